from nightshift.models.application import Application
from nightshift.models.base import Base
from nightshift.models.job import Job, Location
from nightshift.models.user import User
from nightshift.models.venue import Venue

__all__ = ["Application", "Base", "Job", "Location", "User", "Venue"]
