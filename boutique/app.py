# module boutique.app
from boutique.app_setup.factory import create_app

# App globale
app = create_app()
