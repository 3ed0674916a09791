# bizpulse/config.py
from dotenv import load_dotenv
import os

load_dotenv()

# API Keys
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
COMPANIES_REGISTRY_API_KEY = os.getenv("COMPANIES_REGISTRY_API_KEY")
GOOGLE_PLACES_API_KEY = os.getenv("GOOGLE_PLACES_API_KEY")
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY") or os.getenv("SUPABASE_ANON_KEY")
SLACK_WEBHOOK_URL = os.getenv("SLACK_WEBHOOK_URL")
SLACK_CHANNEL = os.getenv("SLACK_CHANNEL")
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM = os.getenv("EMAIL_FROM", "noreply@bizpulse.local")
EMAIL_TO = os.getenv("EMAIL_TO", "admin@bizpulse.local")

# Models
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

# Runtime parameters
CONCURRENCY = 10
FUZZY_THRESHOLD = 60
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
HTTP_TIMEOUT = 30

# Retry policy
RETRY_MAX_ATTEMPTS = 3
RETRY_INITIAL_DELAY = 1.0

# Verification
TRUST_THRESHOLD = 70
REGISTRY_WEIGHT = 40
LEGAL_REGISTRY_WEIGHT = 30
LOCATION_WEIGHT = 30

# Generation
COST_PER_CALL = 0.03
DEFAULT_CITY = "Tel Aviv-Yafo"
CURRENCY = "₪"

# Batch
BATCH_ITEM_DELAY = 2.0
ESCALATION_MIN_SAMPLE = 5
ESCALATION_SUCCESS_THRESHOLD = 0.9
DAYS_BACK = 1

# URLs
REGISTRY_API_URL = "https://data.tel-aviv.gov.il/api/3/action/datastore_search"
REGISTRY_RESOURCE_ID = "business-licenses"
REGISTRY_NEW_RESOURCE_ID = "new-business-registrations"
REGISTRY_VERIFY_URL = "https://data.tel-aviv.gov.il/verify/{identifier}"
COMPANIES_REGISTRY_URL = "https://data.gov.il/api/3/action/datastore_search"
COMPANIES_REGISTRY_RESOURCE_ID = "f004176c-b85f-4542-8901-7b3176f9a054"
COMPANIES_VERIFY_URL = "https://www.gov.il/he/service/company_extract?companyNumber={company_id}"
PLACES_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"
PLACES_VERIFY_URL = "https://www.google.com/maps/place/?q=place_id:{place_id}"
RESEND_URL = "https://api.resend.com/emails"
SITE_BASE_URL = os.getenv("SITE_BASE_URL", "https://tlv-business-pulse.vercel.app")

# File names
INPUT_CSV = "businesses.csv"
OUTPUT_CSV = "generation_results.csv"
