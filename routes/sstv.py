"""SSTV status routes.

Read-only JSON views of the mode table, the shared decoder's state and
the decoded image history.
"""

from __future__ import annotations

from flask import Blueprint, Response, jsonify, request

from slowscan.logging import get_logger
from slowscan.sstv import ALL_MODES, get_image_history, get_sstv_decoder
from slowscan.sstv.modes import get_mode_by_name

logger = get_logger('slowscan.routes.sstv')

sstv_bp = Blueprint('sstv', __name__, url_prefix='/sstv')


@sstv_bp.route('/modes', methods=['GET'])
def get_modes() -> Response:
    """List supported modes and their timing."""
    return jsonify({
        'status': 'success',
        'modes': [timing.to_dict() for timing in ALL_MODES.values()],
    })


@sstv_bp.route('/modes/<name>', methods=['GET'])
def get_mode(name: str) -> Response:
    """Timing for a single mode."""
    mode = get_mode_by_name(name)
    if mode is None:
        return jsonify({
            'status': 'error',
            'message': f'Unknown mode: {name}'
        }), 404
    return jsonify({
        'status': 'success',
        'mode': ALL_MODES[mode].to_dict(),
    })


@sstv_bp.route('/status', methods=['GET'])
def get_status() -> Response:
    """Current decoder state."""
    try:
        return jsonify({
            'status': 'success',
            'decoder': get_sstv_decoder().get_status(),
        })
    except Exception as e:
        logger.error(f"Error getting SSTV status: {e}")
        return jsonify({
            'status': 'error',
            'message': str(e)
        }), 500


@sstv_bp.route('/history', methods=['GET'])
def get_history() -> Response:
    """Decoded image metadata, newest first."""
    limit = request.args.get('limit')
    if limit is not None:
        try:
            limit = int(limit)
        except ValueError:
            limit = 0
        if limit < 1:
            return jsonify({
                'status': 'error',
                'message': 'limit must be a positive integer'
            }), 400

    images = get_image_history().images()
    if limit is not None:
        images = images[:limit]
    return jsonify({
        'status': 'success',
        'count': len(images),
        'images': [image.to_dict() for image in images],
    })
