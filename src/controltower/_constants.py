"""Internal constants shared across the library."""

BACKEND_URL = "https://qooa-865bc6c8db3f.herokuapp.com"

SETTINGS_KEY = "qooa_settings"
# Current key first; the legacy key is still read and cleared alongside it.
SESSION_KEYS: tuple[str, str] = ("qooa_vendor_session", "qooa_session")

CHANGE_PASSWORD_ENDPOINT = "/api/vendors/change-password"
RESET_PASSWORD_ENDPOINT = "/api/auth/reset-password"
VIEW_FRAGMENT_PATH = "/components/views/{route}.html"

SHARE_RETRY_DELAY_S = 0.3
TOAST_DURATION_S = 3.0

LOGOUT_ADDRESS = "index.html"

# ------------------------------------------------------------------
# Element ids shared by builders, fragments and event bindings
# ------------------------------------------------------------------

SHIPMENTS_CONTAINER_ID = "shipmentsContainer"
GREETING_ID = "vendorGreeting"
LAST_UPDATED_ID = "lastUpdated"
STAT_IDS: dict[str, str] = {
    "total_shipments": "totalShipments",
    "in_transit": "inTransit",
    "bio_shield_active": "bioShieldActive",
    "completed": "completed",
}

NEW_ORDER_BUTTON_ID = "newOrderBtn"
CHANGE_PASSWORD_BUTTON_ID = "changePasswordBtn"
SETTINGS_FORM_ID = "settingsForm"
RESET_SETTINGS_BUTTON_ID = "resetSettingsBtn"
WHATSAPP_DEMO_BUTTON_ID = "whatsappDemoBtn"
