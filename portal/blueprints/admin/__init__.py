from flask import Blueprint

admin_bp = Blueprint('admin', __name__)

# Import route modules to register their endpoints
from . import dashboard  # noqa: E402,F401
from . import agents     # noqa: E402,F401
from . import clients    # noqa: E402,F401
from . import service_requests  # noqa: E402,F401
from . import projects   # noqa: E402,F401
from . import settings   # noqa: E402,F401
