import os
from pathlib import Path


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except (TypeError, ValueError):
        return default


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


def _path_env(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return Path(raw.strip())


BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = BASE_DIR / "data"
MODEL_DIR = BASE_DIR / "models"
LOG_DIR = _path_env("TIMECLOCK_LOG_DIR", BASE_DIR / "logs")
LOG_LEVEL = os.getenv("TIMECLOCK_LOG_LEVEL", "INFO").strip().upper() or "INFO"
LOG_FILE_BYTES = _int_env("TIMECLOCK_LOG_FILE_BYTES", 2_000_000)
LOG_FILE_BACKUPS = _int_env("TIMECLOCK_LOG_FILE_BACKUPS", 5)
DB_PATH = _path_env("TIMECLOCK_DB_PATH", DATA_DIR / "timeclock.db")

# Webcam settings
CAMERA_INDEX = _int_env("TIMECLOCK_CAMERA_INDEX", 0)
FRAME_WIDTH = _int_env("TIMECLOCK_FRAME_WIDTH", 1280)
FRAME_HEIGHT = _int_env("TIMECLOCK_FRAME_HEIGHT", 720)
FRAME_FPS = _int_env("TIMECLOCK_FRAME_FPS", 30)

# Detector models (dlib 68-point landmarks + 128-d ResNet descriptor)
SHAPE_MODEL_PATH = _path_env("TIMECLOCK_SHAPE_MODEL", MODEL_DIR / "shape_predictor_68_face_landmarks.dat")
RECOGNITION_MODEL_PATH = _path_env(
    "TIMECLOCK_RECOGNITION_MODEL",
    MODEL_DIR / "dlib_face_recognition_resnet_model_v1.dat",
)
DETECTOR_UPSAMPLE = _int_env("TIMECLOCK_DETECTOR_UPSAMPLE", 1)
DETECTOR_SCORE_FLOOR = _float_env("TIMECLOCK_DETECTOR_SCORE_FLOOR", -0.4)
DESCRIPTOR_SIZE = 128

# Frame quality gates
MIN_DETECTION_CONFIDENCE = _float_env("TIMECLOCK_MIN_DETECTION_CONFIDENCE", 0.5)
MIN_FACE_AREA = _float_env("TIMECLOCK_MIN_FACE_AREA", 10000.0)
IDEAL_FACE_AREA = _float_env("TIMECLOCK_IDEAL_FACE_AREA", 40000.0)
MIN_QUALITY_SCORE = _float_env("TIMECLOCK_MIN_QUALITY_SCORE", 0.5)
MIN_LIVENESS_SCORE = _float_env("TIMECLOCK_MIN_LIVENESS_SCORE", 0.4)
ENROLLMENT_MIN_LIVENESS_SCORE = _float_env("TIMECLOCK_ENROLLMENT_MIN_LIVENESS", 0.5)

# Recognition settings
MATCH_THRESHOLD = _float_env("TIMECLOCK_MATCH_THRESHOLD", 0.55)
AMBIGUITY_MARGIN = _float_env("TIMECLOCK_AMBIGUITY_MARGIN", 0.1)
REQUIRED_CONSECUTIVE_MATCHES = max(1, _int_env("TIMECLOCK_REQUIRED_MATCHES", 1))

# Capture session settings
POLL_INTERVAL_SECONDS = _float_env("TIMECLOCK_POLL_INTERVAL", 0.5)
SESSION_LOG_REJECTIONS = _bool_env("TIMECLOCK_LOG_REJECTIONS", False)

# Clock in/out settings
MAX_CLOCK_DISTANCE_METERS = _float_env("TIMECLOCK_MAX_DISTANCE_METERS", 500.0)
