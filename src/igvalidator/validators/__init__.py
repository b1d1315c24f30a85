"""
Phase validators.

Each validator is a stateless service whose ``validate(input_location,
config)`` returns a :class:`~igvalidator.models.PhaseResult` and never raises.
"""

from igvalidator.validators.base import PhaseValidator, map_bounded
from igvalidator.validators.content import ContentValidator
from igvalidator.validators.profile import ProfileValidator
from igvalidator.validators.publication import PublicationValidator
from igvalidator.validators.resource import ResourceValidator
from igvalidator.validators.security import SecurityValidator

__all__ = [
    "ContentValidator",
    "PhaseValidator",
    "ProfileValidator",
    "PublicationValidator",
    "ResourceValidator",
    "SecurityValidator",
    "map_bounded",
]
