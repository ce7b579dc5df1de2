# module orderbridge.app
from orderbridge.app_setup.factory import create_app

# App globale
app = create_app()
