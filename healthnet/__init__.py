"""HealthNet: the domain data service of a healthcare-network administration platform."""

from healthnet.service import HealthNetService

__version__ = "1.0.0"

__all__ = ["HealthNetService", "__version__"]
