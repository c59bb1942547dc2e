import click

from colordarts import create_app, socketio


@click.command()
@click.option('--host', default='127.0.0.1', show_default=True, help='Interface to bind.')
@click.option('--port', default=3000, show_default=True, type=int, envvar='PORT', help='Port to listen on.')
@click.option('--debug/--no-debug', default=False, show_default=True)
def main(host, port, debug):
    """Run the Color Darts game server."""
    app = create_app()
    app.logger.info(f"[startup] listening on http://{host}:{port}")
    try:
        # Use SocketIO server to enable websockets
        socketio.run(app, host=host, port=port, debug=debug, allow_unsafe_werkzeug=True)
    finally:
        app.extensions['coordinator'].shutdown()
