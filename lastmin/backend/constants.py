APP_NAME = "LastMin AI Gateway"
APP_VERSION = "1.0.0"
DEFAULT_CORS_ALLOW_ORIGINS = [
	"http://localhost",
	"http://127.0.0.1",
	"http://localhost:3000",
	"http://localhost:8080",
	"http://localhost:9002",
]
DEFAULT_TRUSTED_HOSTS = [
	"127.0.0.1",
	"localhost",
	"testserver",
]

DEFAULT_PROVIDER_BASE_URL = "https://api.mistral.ai/v1"
DEFAULT_PROVIDER_MODEL = "mistral-large-latest"
DEFAULT_PROVIDER_TEMPERATURE = 0.7
DEFAULT_PROVIDER_MAX_TOKENS = 1000
DEFAULT_PROVIDER_TIMEOUT_S = 30.0
PLACEHOLDER_API_KEYS = frozenset(
	{
		"your-api-key-here",
		"your-mixtral-api-key-here",
		"your-openai-api-key-here",
		"changeme",
	}
)
MIN_API_KEY_LENGTH = 11

DEFAULT_DIRECT_FETCH_TIMEOUT_S = 10.0
DEFAULT_BROKERED_FETCH_TIMEOUT_S = 30.0
DEFAULT_MAX_WEB_URLS = 3
DEFAULT_WEB_CONTENT_MAX_CHARS = 5000
DEFAULT_WEB_CONTENT_MIN_CHARS = 200
DEFAULT_EXTENSION_STALE_S = 90.0
DIRECT_FETCH_MIN_USEFUL_CHARS = 50

DEFAULT_QUIZ_MIN_QUESTIONS = 1
DEFAULT_QUIZ_MAX_QUESTIONS = 20
DEFAULT_QUIZ_QUESTION_COUNT = 5
QUIZ_OPTION_COUNT = 4
MINUTES_PER_QUIZ_QUESTION = 2

WORDS_PER_MINUTE = 200
ANALYZE_INPUT_CHARS = 12000
SUMMARIZE_INPUT_CHARS = 12000
QUIZ_INPUT_CHARS = 8000
CHAT_MESSAGE_MAX_CHARS = 1000
CHAT_CONTEXT_MAX_CHARS = 5000

QUIZ_DIFFICULTIES = ("easy", "medium", "hard", "mixed")

BROWSER_USER_AGENT = (
	"Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
	"(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)
STRIP_SELECTORS = "script, style, noscript, nav, header, footer, aside, .ad, .ads, .advertisement, .sidebar"
CONTENT_SELECTORS = (
	"main",
	"article",
	".content",
	".main-content",
	".post-content",
	".entry-content",
	"#content",
	"#main",
	".article-body",
	".story-body",
)

SCORE_BUCKETS = (
	("0-20", 0, 20),
	("21-40", 21, 40),
	("41-60", 41, 60),
	("61-80", 61, 80),
	("81-100", 81, 100),
)
