import logging
import os
import random
from typing import Optional, Tuple

from dotenv import load_dotenv
from flask import Flask, jsonify, send_from_directory
from flask_cors import CORS
from flask_socketio import SocketIO

from .socketio_handlers import GameWorld, ensure_loop_started, init_lava_socket

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)



def _cors_origins(raw: str):
    if raw.strip() == '*':
        return '*'
    return [origin.strip() for origin in raw.split(',') if origin.strip()]



def create_app(rng: Optional[random.Random] = None, start_loop: bool = True) -> Tuple[Flask, SocketIO]:
    """Build the Flask app, its Socket.IO server and the single game world.

    ``start_loop=False`` leaves the tick loop stopped so callers can step the
    simulation themselves.
    """
    app = Flask(__name__)

    # Browser settings
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY') or 'SECRET_KEY'

    # Server settings
    app.config['HOST'] = os.environ.get('HOST') or '0.0.0.0'
    app.config['PORT'] = int(os.environ.get('PORT') or 4245)
    app.config['SOCKETIO_ASYNC_MODE'] = os.environ.get('SOCKETIO_ASYNC_MODE') or 'threading'
    app.config['CORS_ORIGINS'] = _cors_origins(os.environ.get('CORS_ORIGINS') or '*')

    CORS(app, origins=app.config['CORS_ORIGINS'])

    socketio = SocketIO(
        app,
        cors_allowed_origins=app.config['CORS_ORIGINS'],
        async_mode=app.config['SOCKETIO_ASYNC_MODE'],
        logger=False,
        engineio_logger=False,
        ping_timeout=60,
        ping_interval=25
    )

    world = GameWorld(socketio, rng=rng)
    simulation = init_lava_socket(socketio, world)
    app.extensions['lava_world'] = world
    app.extensions['lava_simulation'] = simulation

    @app.route('/')
    def index():
        if app.static_folder and os.path.isfile(os.path.join(app.static_folder, 'index.html')):
            return send_from_directory(app.static_folder, 'index.html')
        return jsonify({
            'status': 'ok',
            'service': 'lava-tower',
            'endpoints': {
                'health': '/health',
                'socket': 'ws://host:port/socket.io/'
            }
        }), 200

    @app.route('/health')
    def health_check():
        with world.lock:
            return jsonify({
                'status': 'ok',
                'service': 'lava-tower',
                'players': len(world.players),
                'round': world.round_number,
                'roundStatus': world.status,
            }), 200

    if start_loop:
        ensure_loop_started(world, simulation)

    logger.info("Socket.IO configured (async_mode=%s)", app.config['SOCKETIO_ASYNC_MODE'])
    return app, socketio
