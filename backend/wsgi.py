try:
    from backend.skribbl.server import create_app
except ImportError:  # pragma: no cover
    from skribbl.server import create_app

app, socketio = create_app()
