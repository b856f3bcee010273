# Campus Parking Permits: Database Models
# Import all models here for SQLAlchemy discovery

from app.models.user import User          # noqa
from app.models.vehicle import Vehicle    # noqa
from app.models.permit import Permit      # noqa
from app.models.payment import Payment    # noqa
