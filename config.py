import os
import sys

# 기본 디렉토리 설정
IS_FROZEN = getattr(sys, "frozen", False)
BASE_DIR = sys._MEIPASS if IS_FROZEN else os.path.dirname(os.path.abspath(__file__))

# 경로 설정
STATIC_DIR = os.path.join(BASE_DIR, "static")
LOG_FILE = os.getenv("PORTAL_LOG_FILE", os.path.join(BASE_DIR, "portal.log"))

# 서버 설정
DEFAULT_HOST = os.getenv("HOST", "127.0.0.1")
DEFAULT_PORT = int(os.getenv("PORT", "8000"))
SERVER_START_TIMEOUT = 15.0
SESSION_TTL = int(os.getenv("SESSION_TTL", "14400"))  # 4시간 (시험 시간보다 길게)
SESSION_CLEANUP_INTERVAL = 300

# Results API 설정
RESULTS_API_URL = os.getenv("RESULTS_API_URL", "http://127.0.0.1:5000/api")
RESULTS_API_TIMEOUT = float(os.getenv("RESULTS_API_TIMEOUT", "10.0"))
RESULTS_API_TOKEN = os.getenv("RESULTS_API_TOKEN", "")

# 타이머 설정
TICK_INTERVAL = float(os.getenv("TICK_INTERVAL", "1.0"))
TIME_WARNING_SECONDS = 600  # 10분 미만이면 경고 표시

# 포털 경로
HOME_PATH = "/student"
EXAMS_PATH = "/student/exams"
EXAM_PATH_PREFIX = "/student/exam/"
RESULTS_PATH = "/student/results"

UNLOAD_WARNING = "Are you sure you want to leave? Your exam progress will be lost."
