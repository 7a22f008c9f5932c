"""Constants for pypetkit library."""

from __future__ import annotations


# API Configuration
PASSPORT_URL = "https://passport.petkt.com/"
DOMESTIC_URL = "https://api.petkit.cn/6/"
DOMESTIC_REGIONS = frozenset({"cn", "china"})
DEFAULT_REGION = "DE"
DEFAULT_TIMEZONE = "Europe/Berlin"
DEFAULT_TIMEOUT = 30  # seconds

# Response keys
RES_KEY = "result"
ERR_KEY = "error"

# Endpoints
ENDPOINT_REGION_SERVERS = "v1/regionservers"
ENDPOINT_LOGIN = "user/login"
ENDPOINT_LOGIN_CODE = "user/sendcodeforquicklogin"
ENDPOINT_REFRESH_SESSION = "user/refreshsession"
ENDPOINT_DETAILS = "user/details2"
ENDPOINT_FAMILY_LIST = "group/family/list"
ENDPOINT_OWN_DEVICES = "owndevices"
ENDPOINT_DEVICE_RECORD = "getDeviceRecord"
ENDPOINT_STATISTIC = "statistic"
ENDPOINT_PET_OUT_GRAPH = "getPetOutGraph"
ENDPOINT_LIVE = "start/live"
ENDPOINT_CLOUD_VIDEO = "cloud/video"

# Headers
API_VERSION = "12.6.0"
HEADER_LOCALE = "en-US"
SESSION_HEADERS = ("F-Session", "X-Session")
DEFAULT_HEADERS = {
    "Accept": "*/*",
    "Accept-Language": "en-US;q=1, it-US;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "Content-Type": "application/x-www-form-urlencoded",
    "User-Agent": "okhttp/3.14.19",
    "X-Img-Version": "1",
    "X-Locale": HEADER_LOCALE,
    "X-Client": "android(15.1;23127PN0CG)",
    "X-Hour": "24",
    "X-Api-Version": API_VERSION,
}

# Client fingerprint sent with the login request
CLIENT_INFO = {
    "locale": HEADER_LOCALE,
    "name": "23127PN0CG",
    "osVersion": "15.1",
    "phoneBrand": "Xiaomi",
    "platform": "android",
    "source": "app.petkit-android",
    "version": API_VERSION,
}

# Device type codes
FEEDER = "feeder"
FEEDER_MINI = "feedermini"
D3 = "d3"
D4 = "d4"
D4S = "d4s"
D4H = "d4h"
D4SH = "d4sh"
T3 = "t3"
T4 = "t4"
T5 = "t5"
T6 = "t6"
T7 = "t7"
W4 = "w4"
W5 = "w5"
CTW2 = "ctw2"
CTW3 = "ctw3"
K2 = "k2"
K3 = "k3"
PET = "pet"

# Device groups
DEVICES_FEEDER = (FEEDER, FEEDER_MINI, D3, D4, D4S, D4H, D4SH)
DEVICES_LITTER_BOX = (T3, T4, T5, T6, T7)
DEVICES_WATER_FOUNTAIN = (W4, W5, CTW2, CTW3)
DEVICES_PURIFIER = (K2, K3)
FEEDER_WITH_CAMERA = (D4H, D4SH)
LITTER_WITH_CAMERA = (T5, T6, T7)
LITTER_NO_CAMERA = (T3, T4)
DEVICES_WITH_CAMERA = FEEDER_WITH_CAMERA + LITTER_WITH_CAMERA

# Vendor error codes
ERROR_CODE_SERVER_BUSY = 1
ERROR_CODE_SESSION_EXPIRED = 5
ERROR_CODE_AUTH_FAILED = 122
ERROR_CODE_UNREGISTERED = 125

# Session lifetime assumed when the login response declares none
DEFAULT_SESSION_TTL = 604800  # seconds

# Retry Configuration
RETRY_BASE_DELAY = 1.0  # seconds
RETRY_MAX_DELAY = 16.0  # seconds
RETRY_MAX_RETRIES = 5

# Logging
TOKEN_LOG_PREFIX_LENGTH = 8
