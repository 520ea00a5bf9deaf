# WSGI entry point for production servers
import os

basedir = os.path.abspath(os.path.dirname(__file__))

os.environ.setdefault('FLASK_ENV', 'production')

# Default SQLite database lives in instance/
default_db_path = os.path.join(basedir, 'instance', 'gymsuite.db')
os.environ.setdefault('DATABASE_URL', f'sqlite:///{default_db_path}')

instance_dir = os.path.join(basedir, 'instance')
if not os.path.exists(instance_dir):
    os.makedirs(instance_dir, exist_ok=True)

from gymsuite import create_app  # noqa: E402

application = create_app('production')
app = application
