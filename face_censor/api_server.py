#!/usr/bin/env python3
"""
Face Censor API Server
Upload an image, pixelate detected faces, adjust the block size, download the result.
"""

import logging
import threading
from io import BytesIO
from typing import Dict, Optional

from flask import Flask, request, jsonify, send_file
from flask_cors import CORS
from werkzeug.utils import secure_filename

from . import config
from .models.face_engine import FaceEngine
from .pipeline.censor_session import CensorSession
from .services.censor_service import CensorService
from .services.detection_service import DetectionService
from .services.pixel_buffer_service import PixelBufferService
from .services.region_clipper import round_half_up

app = Flask(__name__)
CORS(app)  # Enable CORS for frontend communication
app.config['MAX_CONTENT_LENGTH'] = config.MAX_CONTENT_LENGTH

# Initialize services; the model itself is loaded in main()
face_engine = FaceEngine()
detection_service = DetectionService(face_engine)
censor_service = CensorService()
pixel_buffer_service = PixelBufferService()

logger = logging.getLogger(__name__)

# Session storage for censoring state
sessions: Dict[str, CensorSession] = {}
sessions_lock = threading.Lock()


def allowed_file(filename: str) -> bool:
    """Check if file extension is allowed."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in config.ALLOWED_EXTENSIONS


def parse_block_size(value) -> int:
    """Validate a user-supplied block size against the configured range."""
    if isinstance(value, bool):
        raise ValueError("Block size must be an integer")
    try:
        block_size = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Block size must be an integer, got {value!r}")
    if isinstance(value, float) and value != block_size:
        raise ValueError(f"Block size must be an integer, got {value!r}")
    if not config.MIN_BLOCK_SIZE <= block_size <= config.MAX_BLOCK_SIZE:
        raise ValueError(
            f"Block size must be between {config.MIN_BLOCK_SIZE} and {config.MAX_BLOCK_SIZE}, got {block_size}"
        )
    return block_size


def get_session(session_id: Optional[str]) -> Optional[CensorSession]:
    if not session_id:
        return None
    with sessions_lock:
        return sessions.get(session_id)


def detections_to_json(session: CensorSession) -> list:
    results = []
    for det in session.detections or []:
        rect = det.rectangle
        results.append({
            'x': round_half_up(rect.x),
            'y': round_half_up(rect.y),
            'width': round_half_up(rect.width),
            'height': round_half_up(rect.height),
            'confidence': round(det.confidence, 3) if det.confidence is not None else None,
        })
    return results


def render_response(session: CensorSession) -> dict:
    return {
        'success': True,
        'session_id': session.session_id,
        'block_size': session.block_size,
        'face_count': len(session.detections or []),
        'detections': detections_to_json(session),
        'image': pixel_buffer_service.to_data_url(session.output),
    }


@app.route('/api/upload', methods=['POST'])
def upload_image():
    """Decode an uploaded image and open a session for it."""
    try:
        if 'image' not in request.files:
            return jsonify({'success': False, 'message': 'No image provided'}), 400

        file = request.files['image']
        filename = secure_filename(file.filename or '')
        if not filename:
            return jsonify({'success': False, 'message': 'No file selected'}), 400
        if not allowed_file(filename):
            return jsonify({'success': False, 'message': 'Invalid file type. Expected image file.'}), 400

        try:
            buffer = pixel_buffer_service.decode(file.read())
        except ValueError as e:
            return jsonify({'success': False, 'message': str(e)}), 400

        session = CensorSession(buffer, censor_service=censor_service)
        with sessions_lock:
            sessions[session.session_id] = session

        logger.info(f"File uploaded: {filename} ({buffer.width}x{buffer.height}) for session {session.session_id}")
        return jsonify({
            'success': True,
            'session_id': session.session_id,
            'width': buffer.width,
            'height': buffer.height,
        })

    except Exception as e:
        logger.error(f"Upload error: {e}")
        return jsonify({'success': False, 'message': 'Processing failed'}), 500


@app.route('/api/censor', methods=['POST'])
def apply_censor():
    """Detect faces (once per session) and pixelate them."""
    try:
        payload = request.get_json(silent=True) or {}
        session = get_session(payload.get('session_id'))
        if session is None:
            return jsonify({'success': False, 'message': 'Invalid session'}), 400

        try:
            block_size = parse_block_size(payload.get('block_size', session.block_size))
        except ValueError as e:
            return jsonify({'success': False, 'message': str(e)}), 400

        if not session.has_detections:
            if not detection_service.ready:
                return jsonify({
                    'success': False,
                    'message': f'Face detection model not ready ({face_engine.state.value})',
                }), 503
            logger.info(f"Running face detection for session {session.session_id}")
            detections = detection_service.detect_faces(session.original)
        else:
            detections = session.detections

        session.apply(detections, block_size)
        return jsonify(render_response(session))

    except Exception as e:
        logger.error(f"Censor error: {e}")
        return jsonify({'success': False, 'message': 'Processing failed'}), 500


@app.route('/api/block-size', methods=['POST'])
def change_block_size():
    """Re-render the session with a new block size, always from the original image."""
    try:
        payload = request.get_json(silent=True) or {}
        session = get_session(payload.get('session_id'))
        if session is None:
            return jsonify({'success': False, 'message': 'Invalid session'}), 400

        try:
            block_size = parse_block_size(payload.get('block_size'))
        except ValueError as e:
            return jsonify({'success': False, 'message': str(e)}), 400

        if not session.has_detections:
            return jsonify({'success': False, 'message': 'Apply the censor before changing the block size'}), 400

        session.rerender(block_size)
        return jsonify(render_response(session))

    except Exception as e:
        logger.error(f"Re-render error: {e}")
        return jsonify({'success': False, 'message': 'Processing failed'}), 500


@app.route('/api/download/<session_id>')
def download_image(session_id):
    """Serve the censored image as a PNG attachment."""
    session = get_session(session_id)
    if session is None:
        return jsonify({'error': 'Session not found'}), 404

    output = session.output
    if output is None:
        return jsonify({'error': 'No processed image available'}), 404

    try:
        data = BytesIO(pixel_buffer_service.encode_png(output))
        logger.info(f"Download started for session {session_id}")
        return send_file(data, mimetype='image/png', as_attachment=True,
                         download_name=config.DOWNLOAD_FILENAME)
    except Exception as e:
        logger.error(f"Error serving image for session {session_id}: {e}")
        return jsonify({'error': 'Error serving image'}), 500


@app.route('/api/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    with sessions_lock:
        active = len(sessions)
    return jsonify({
        'status': 'healthy',
        'message': 'Face Censor API is running',
        'detector': face_engine.state.value,
        'active_sessions': active,
    })


@app.route('/api/clear-session', methods=['POST'])
def clear_session():
    """Clear a session and free memory."""
    payload = request.get_json(silent=True) or {}
    session_id = payload.get('session_id')
    with sessions_lock:
        session = sessions.pop(session_id, None) if session_id else None
    if session is None:
        return jsonify({'success': False, 'message': 'Session not found'})
    session.clear()
    return jsonify({'success': True, 'message': 'Session cleared'})


@app.errorhandler(413)
def too_large(e):
    """Handle file too large error."""
    return jsonify({'error': f'File too large. Maximum size is {config.MAX_CONTENT_LENGTH // (1024 * 1024)}MB.'}), 413


@app.errorhandler(500)
def internal_error(e):
    """Handle internal server error."""
    logger.error(f"Internal server error: {e}")
    return jsonify({'error': 'Internal server error'}), 500


def start_model_loading() -> threading.Thread:
    """Load the face detection model off the request path; requests get 503 until READY."""

    def _load():
        try:
            face_engine.load()
        except Exception as e:
            logger.warning(f"Face detection disabled, model failed to load: {e}")

    thread = threading.Thread(target=_load, name="face-engine-loader", daemon=True)
    thread.start()
    return thread


def main():
    config.configure_logging()
    logger.info("Starting Face Censor API Server...")
    logger.info(f"Max upload size: {config.MAX_CONTENT_LENGTH // (1024 * 1024)}MB")
    logger.info(f"Block size range: {config.MIN_BLOCK_SIZE}-{config.MAX_BLOCK_SIZE}px")
    start_model_loading()
    app.run(host=config.API_HOST, port=config.API_PORT, debug=False, threaded=True)


if __name__ == '__main__':
    main()
