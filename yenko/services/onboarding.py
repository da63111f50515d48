"""
Onboarding resolver: which setup step an account still has to complete.

Pure function of (profile, driver record). Accepts model instances or plain
dicts so it can be used on rows and on API payloads alike.
"""
from dataclasses import dataclass

PROFILE_SETUP_PATH = "/onboard/profile"
VEHICLE_SETUP_PATH = "/driver/register"
ADMIN_HOME_PATH = "/admin"
DRIVER_HOME_PATH = "/driver/direction"
PASSENGER_HOME_PATH = "/passenger/home"


@dataclass(frozen=True)
class OnboardingStatus:
    is_complete: bool
    next_step: str  # profile | vehicle | complete
    redirect_to: str

    def to_dict(self):
        return {
            "isComplete": self.is_complete,
            "nextStep": self.next_step,
            "redirectTo": self.redirect_to,
        }


def _field(record, name):
    if record is None:
        return None
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def resolve(profile, driver=None):
    """Map (profile, driver record) to the next onboarding step."""
    if not _field(profile, "full_name"):
        return OnboardingStatus(False, "profile", PROFILE_SETUP_PATH)

    role = _field(profile, "role")
    if role == "admin":
        return OnboardingStatus(True, "complete", ADMIN_HOME_PATH)

    if role == "driver":
        if not _field(driver, "car_make") or not _field(driver, "plate_number"):
            return OnboardingStatus(False, "vehicle", VEHICLE_SETUP_PATH)
        return OnboardingStatus(True, "complete", DRIVER_HOME_PATH)

    return OnboardingStatus(True, "complete", PASSENGER_HOME_PATH)
