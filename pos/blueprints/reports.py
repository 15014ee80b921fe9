"""Sales reports blueprint."""
from flask import Blueprint, current_app

from pos.middleware import require_login
from pos.services.report_service import sales_summary, weekly_sales
from pos.state import get_store
from pos.utils.formatters import format_rupiah
from pos.utils.http import till_response

reports_bp = Blueprint('reports', __name__, url_prefix='/reports')


@reports_bp.route('/')
@require_login
def index():
    """Headline metrics plus revenue per day for the last week."""
    store = get_store()
    transactions = store.state.transactions
    summary = sales_summary(transactions)
    summary['formatted'] = {
        'total_revenue': format_rupiah(summary['total_revenue']),
        'total_profit': format_rupiah(summary['total_profit']),
    }
    language = current_app.config.get('DEFAULT_LANGUAGE', 'id')
    return till_response({
        'summary': summary,
        'weekly_sales': weekly_sales(transactions, language=language),
    }, store)
