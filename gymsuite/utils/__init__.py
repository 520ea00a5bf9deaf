# Utils package
from .decorators import gym_required, role_required, owner_required, staff_manager_required, coaches_manager_required
from .helpers import get_for_gym_or_404, pagination_args, paginated, parse_datetime
