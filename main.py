import logging
import os

from atms import create_app, socketio

app = create_app()
logger = logging.getLogger(__name__)

if __name__ == '__main__':
    debug = os.environ.get('FLASK_DEBUG', 'false').lower() in ('true', '1')
    host = os.environ.get('HOST', '0.0.0.0')
    port = int(os.environ.get('PORT', 8080))
    logger.info('Starting ATMS on %s:%d (%s)', host, port, socketio.async_mode)
    socketio.run(app, host=host, port=port, debug=debug)
