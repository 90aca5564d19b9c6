"""Map view navigation: state overview -> district -> local body."""

import logging
from typing import Mapping, Optional

from .errors import NavigationError
from .models import LocalBody

logger = logging.getLogger(__name__)

OVERVIEW = "overview"
DISTRICT = "district"
LOCAL_BODY = "local_body"


class Navigator:
    def __init__(self):
        self.state = OVERVIEW
        self.district: Optional[str] = None
        self.code: Optional[str] = None
        self.local_body: Optional[LocalBody] = None

    def select_district(self, district: str, code: Optional[str] = None):
        """Feature click on the state map; ``code`` is the clicked local body, kept for reference."""
        if self.state != OVERVIEW:
            raise NavigationError(f"Cannot open a district from {self.state}")
        self.state = DISTRICT
        self.district = district
        self.code = code
        self.local_body = None

    def select_local_body(self, code: str, registry: Mapping[str, LocalBody]) -> bool:
        """Feature click on a district map. Unknown codes leave the view unchanged."""
        if self.state != DISTRICT:
            raise NavigationError(f"Cannot open a local body from {self.state}")
        lb = registry.get(code)
        if lb is None:
            logger.warning("Local Body with code %s not found in metadata", code)
            return False
        self.state = LOCAL_BODY
        self.code = code
        self.local_body = lb
        return True

    def back(self):
        if self.state == LOCAL_BODY:
            self.state = DISTRICT
            self.local_body = None
        elif self.state == DISTRICT:
            self.home()
        else:
            raise NavigationError("Already at the state overview")

    def home(self):
        """Straight to the overview from any view."""
        self.state = OVERVIEW
        self.district = None
        self.code = None
        self.local_body = None

    def __repr__(self):
        return f"Navigator(state={self.state!r}, district={self.district!r}, code={self.code!r})"
