from datetime import datetime, date, timedelta
from flask import current_app, request

from gymsuite.errors import NotFoundError, ValidationError


def month_start(now=None):
    """Local midnight on the first day of the month"""
    now = now or datetime.now()
    return datetime(now.year, now.month, 1)


def month_bounds(now=None):
    """(first of this month, first of next month) as datetimes"""
    start = month_start(now)
    if start.month == 12:
        return start, datetime(start.year + 1, 1, 1)
    return start, datetime(start.year, start.month + 1, 1)


def shift_months(d, months):
    """First of the month `months` months away from d (negative goes back)"""
    index = d.year * 12 + (d.month - 1) + months
    return datetime(index // 12, index % 12 + 1, 1)


def day_bounds(day=None):
    """(today 00:00, tomorrow 00:00)"""
    day = day or date.today()
    start = datetime(day.year, day.month, day.day)
    return start, start + timedelta(days=1)


def month_key(d):
    """'YYYY-MM' bucket key"""
    return f'{d.year}-{d.month:02d}'


def parse_datetime(value, field='datetime'):
    """Parse an ISO-8601 datetime query/body value"""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f'Invalid {field}', details={field: [f'Not an ISO datetime: {value}']})


def pagination_args(req=None, default_per_page=None):
    """Get pagination arguments from request"""
    req = req or request
    default_per_page = default_per_page or current_app.config.get('ITEMS_PER_PAGE', 20)
    page = req.args.get('page', 1, type=int)
    per_page = req.args.get('per_page', default_per_page, type=int)
    return page, per_page


def get_for_gym_or_404(model, object_id, gym_id):
    """Load a row by id, treating rows of other gyms as missing"""
    obj = model.query.filter_by(id=object_id, gym_id=gym_id).first()
    if obj is None:
        raise NotFoundError(f'{model.__name__} {object_id} not found')
    return obj


def paginated(query, serializer):
    """Paginate a query from request args into a JSON-ready dict"""
    page, per_page = pagination_args()
    result = query.paginate(page=page, per_page=per_page, error_out=False)
    return {
        'items': [serializer(item) for item in result.items],
        'page': result.page,
        'per_page': result.per_page,
        'total': result.total,
        'pages': result.pages,
    }
