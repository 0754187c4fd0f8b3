# src/autojoin/config/const.py
from __future__ import annotations

# значения по умолчанию для Settings (перекрываются YAML/.env/ENV)
DEFAULT_BACKEND = "consul"
DEFAULT_NODE_PREFIX = "autojoin"

DEFAULT_CONSUL_SCHEME = "http"
DEFAULT_CONSUL_HOST = "localhost"
DEFAULT_CONSUL_PORT = 8500
DEFAULT_CONSUL_SVC = "autojoin"
DEFAULT_CONSUL_SVC_PORT = 5672
DEFAULT_CONSUL_SVC_TTL: int | None = 30
DEFAULT_CONSUL_DOMAIN = "consul"

DEFAULT_HTTP_TIMEOUT = 10.0

# текст в поле Notes у TTL-проверки
CONSUL_CHECK_NOTES = "autojoin TTL health check"

# восстановление после 500 от реестра: число попыток discover() и пауза между ними
RECOVERY_ATTEMPTS = 60
RECOVERY_DELAY_SEC = 1.0

ENV_PREFIX = "AUTOJOIN_"
