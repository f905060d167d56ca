import logging
import os

from dotenv import load_dotenv

# Load environment variables before anything reads them
load_dotenv()

# eventlet has to patch the standard library before Flask is imported
if (os.environ.get('SOCKETIO_ASYNC_MODE') or 'threading') == 'eventlet':
    import eventlet
    eventlet.monkey_patch()

from lava_tower import create_app  # noqa: E402
from lava_tower.socketio_handlers import stop_loop  # noqa: E402

logging.basicConfig(
    level=(os.environ.get('LOG_LEVEL') or 'INFO').upper(),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s'
)

app, socketio = create_app()


# this runs the flask application on the development server
if __name__ == "__main__":
    print("\n" + "="*60)
    print(f"🔥 Lava Tower server starting on port {app.config['PORT']}")
    print(f"   - Round loop every {int(app.extensions['lava_world'].TICK_INTERVAL * 1000)} ms")
    print("="*60 + "\n")
    try:
        socketio.run(app, host=app.config['HOST'], port=app.config['PORT'], allow_unsafe_werkzeug=True)
    except KeyboardInterrupt:
        print("Stopping server...")
    finally:
        stop_loop(app.extensions['lava_world'])
