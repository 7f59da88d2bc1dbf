try:
    from backend.imposter.server import create_app
except ImportError:  # pragma: no cover
    from imposter.server import create_app

app, socketio = create_app()
