import os

from dotenv import load_dotenv

# Carrega .env se existir (desenvolvimento local)
load_dotenv()

# Configurações globais de ambiente
APP_HOST = os.getenv("HOST", "0.0.0.0")
APP_PORT = int(os.getenv("PORT", "3000"))
DEBUG_MODE = os.getenv("DEBUG_MODE", "False").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG_MODE else "INFO").upper()

SERVICE_NAME = "gitlab-discord-relay"

# Rotas namespace -> webhook
# Pares DISCORD_WEBHOOK_<ID>_URL / DISCORD_WEBHOOK_<ID>_NAMESPACE no ambiente
WEBHOOK_URL_ENV_PATTERN = r"^DISCORD_WEBHOOK_(\w+)_URL$"
WEBHOOK_NAMESPACE_ENV_TEMPLATE = "DISCORD_WEBHOOK_{}_NAMESPACE"
# Arquivo JSON opcional com rotas adicionais (validado no startup)
DISCORD_WEBHOOKS_FILE = os.getenv("DISCORD_WEBHOOKS_FILE")

# Envio para o Discord
_timeout_env = os.getenv("DISCORD_TIMEOUT_SECONDS", "").strip()
DISCORD_TIMEOUT_SECONDS = float(_timeout_env) if _timeout_env else None
DISCORD_SEND_ATTEMPTS = max(1, int(os.getenv("DISCORD_SEND_ATTEMPTS", "1")))  # 1 = sem retry
DISCORD_RETRY_BACKOFF_SECONDS = float(os.getenv("DISCORD_RETRY_BACKOFF_SECONDS", "1.0"))
DISCORD_RETRY_MAX_BACKOFF_SECONDS = float(os.getenv("DISCORD_RETRY_MAX_BACKOFF_SECONDS", "30.0"))

# Eventos GitLab suportados
EVENT_PUSH = "push"
EVENT_MERGE_REQUEST = "merge_request"
SUPPORTED_EVENTS = (EVENT_PUSH, EVENT_MERGE_REQUEST)

# Limites do Discord
EMBED_TITLE_LIMIT = 256
EMBED_FIELD_VALUE_LIMIT = 1024

# Cores dos embeds
PUSH_COLOR = int(os.getenv("PUSH_COLOR", "7506394"))
MERGE_REQUEST_OPENED_COLOR = int(os.getenv("MERGE_REQUEST_OPENED_COLOR", "65280"))
MERGE_REQUEST_OTHER_COLOR = int(os.getenv("MERGE_REQUEST_OTHER_COLOR", "16711680"))

NO_DESCRIPTION_PLACEHOLDER = "No description provided"

# Respostas do endpoint
MSG_PROCESSED = "Webhook processed successfully."
MSG_UNSUPPORTED = "Event type not supported"
MSG_INVALID_JSON = "Invalid JSON payload"
MSG_INVALID_PAYLOAD = "Invalid payload"
