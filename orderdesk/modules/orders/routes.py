"""
Orders Admin Routes
===================

Page and JSON API for the live orders board.
"""

import logging

from flask import render_template, request, redirect, session, jsonify, current_app
from flask_cors import cross_origin

from orderdesk.core.config import Config, get_config_value
from orderdesk.core.exceptions import DocumentNotFound, MutationError
from orderdesk.core.logging_service import LoggingService
from . import orders_bp
from .board import STATE_ERROR, STATE_LOADING
from .gateway import CONFIRM_PROMPT
from .join import item_names, item_count

logger = logging.getLogger(__name__)

# Allowed origins for CORS on the JSON API
ALLOWED_ORIGINS = Config.ORDERDESK_ALLOWED_ORIGINS


def _get_board():
    ext = current_app.extensions.get('orderdesk')
    return ext.board if ext is not None else None


def _login_required():
    """True when admin access is enforced and this session has no admin"""
    return bool(get_config_value('ORDERDESK_REQUIRE_ADMIN', False)) and 'admin_id' not in session


@orders_bp.app_template_filter('item_names')
def item_names_filter(row):
    """Item names joined for the Order column"""
    return item_names(row)


@orders_bp.app_template_filter('item_count')
def item_count_filter(row):
    return item_count(row)


def _serialize_row(row):
    data = dict(row)
    data['itemNames'] = item_names(row)
    data['itemCount'] = item_count(row)
    return data


@orders_bp.route('/')
def orders_board():
    """Pending and delivered orders page"""
    if _login_required():
        login_url = get_config_value('ORDERDESK_LOGIN_URL', '/admin/login')
        return redirect(f"{login_url}?next={request.path}")

    board = _get_board()
    if board is None:
        return render_template('orders/dashboard.html', state=STATE_ERROR,
                               error='Order board not initialised',
                               pending=[], delivered=[], confirm_prompt=CONFIRM_PROMPT)

    partition = board.partition()
    return render_template(
        'orders/dashboard.html',
        state=board.state,
        error=board.error,
        pending=partition['pending'],
        delivered=partition['delivered'],
        confirm_prompt=CONFIRM_PROMPT
    )


@orders_bp.route('/api/orders')
@cross_origin(origins=ALLOWED_ORIGINS)
def api_orders():
    """List pending and delivered orders"""
    if _login_required():
        return jsonify({'success': False, 'error': 'Authentication required'}), 401

    board = _get_board()
    if board is None:
        return jsonify({'success': False, 'error': 'Order board not initialised'}), 500

    if board.state == STATE_ERROR:
        return jsonify({'success': False, 'state': board.state, 'error': board.error}), 503

    partition = board.partition()
    return jsonify({
        'success': True,
        'state': board.state,
        'loading': board.state == STATE_LOADING,
        'pending': [_serialize_row(row) for row in partition['pending']],
        'delivered': [_serialize_row(row) for row in partition['delivered']],
        'other': [_serialize_row(row) for row in partition['other']]
    })


@orders_bp.route('/api/orders/logs')
@cross_origin(origins=ALLOWED_ORIGINS)
def api_order_logs():
    """Recent order activity from the app log, newest first"""
    if _login_required():
        return jsonify({'success': False, 'error': 'Authentication required'}), 401

    limit = request.args.get('limit', 50, type=int)
    limit = max(1, min(limit, 500))
    return jsonify({'success': True, 'logs': LoggingService.recent_logs('orders', limit)})


@orders_bp.route('/api/orders/<order_id>/deliver', methods=['POST'])
@cross_origin(origins=ALLOWED_ORIGINS)
def api_mark_delivered(order_id):
    """Mark an order delivered. Requires {"confirm": true} in the body."""
    if _login_required():
        return jsonify({'success': False, 'error': 'Authentication required'}), 401

    board = _get_board()
    if board is None:
        return jsonify({'success': False, 'error': 'Order board not initialised'}), 500

    data = request.get_json(silent=True) or {}
    confirm = data.get('confirm') in (True, 'true', '1', 1)

    try:
        updated = board.mark_delivered(order_id, confirm, user_id=session.get('admin_id'))
    except DocumentNotFound as e:
        return jsonify({'success': False, 'error': str(e)}), 404
    except MutationError as e:
        return jsonify({'success': False, 'error': str(e)}), 500

    response = {'success': True, 'updated': updated}
    if updated:
        row = board.get_row(order_id)
        if row is not None:
            response['order'] = _serialize_row(row)
    return jsonify(response)
