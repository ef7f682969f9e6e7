"""
Bot Protection Middleware

Request filter applied ahead of routing:
1. Suspicious Paths - Vulnerability-scan targets get 404
2. User-Agent Classification - Known automation gets 403
3. Rate Limiting - Coarse per-client token bucket, 429 with Retry-After
4. Hardening - Security headers and password-link redirect
"""

import re
from collections.abc import Iterable
from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from core.logger import get_logger

from .rate_limiter import RequestRateLimiter, get_client_identifier

logger = get_logger(__name__)

# Evaluated before the deny-list
ALLOWED_AGENTS = (
    "googlebot",
    "bingbot",
    "duckduckbot",
    "applebot",
    "uptimerobot",
    "pingdom",
    "better uptime",
    "vercel-screenshot",
    "slackbot",
    "twitterbot",
    "linkedinbot",
    "facebookexternalhit",
    "discordbot",
    "whatsapp",
    "telegrambot",
)

DENIED_AGENTS = (
    "curl",
    "wget",
    "python-requests",
    "python-urllib",
    "python-httpx",
    "aiohttp",
    "go-http-client",
    "java/",
    "okhttp",
    "libwww-perl",
    "httpclient",
    "scrapy",
    "headlesschrome",
    "phantomjs",
    "selenium",
    "puppeteer",
    "playwright",
    "nikto",
    "sqlmap",
    "nmap",
    "masscan",
    "zgrab",
    "nuclei",
    "gobuster",
    "dirbuster",
    "semrush",
    "ahrefs",
    "mj12bot",
    "dotbot",
    "petalbot",
    "bytespider",
    "gptbot",
    "ccbot",
    "bot",
    "crawler",
    "spider",
    "scraper",
)

SUSPICIOUS_PATH_PATTERNS = (
    re.compile(r"\.(php|asp|aspx|jsp|cgi|pl|env|ini|bak|sql|sh)$", re.IGNORECASE),
    re.compile(r"/(wp-admin|wp-login|wp-content|wp-includes|xmlrpc)", re.IGNORECASE),
    re.compile(r"/(phpmyadmin|pma|adminer|myadmin)", re.IGNORECASE),
    re.compile(r"/(admin|administrator|config|setup|install)(/|$)", re.IGNORECASE),
    re.compile(r"/(cgi-bin|bin/sh|shell|cmd|console)(/|$)", re.IGNORECASE),
    re.compile(r"/\.(git|svn|hg|env|aws|ssh|htaccess|htpasswd|ds_store)", re.IGNORECASE),
    re.compile(r"/(etc/passwd|proc/self)", re.IGNORECASE),
)

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

DEFAULT_EXEMPT_PREFIXES = ("/static/", "/_next/", "/favicon.ico", "/health")


def is_bot_user_agent(user_agent: str | None) -> bool:
    """
    Classify a User-Agent header

    Allow-listed crawlers and preview bots win over the deny-list.
    A missing User-Agent is treated as automation.
    """
    if not user_agent or not user_agent.strip():
        return True

    ua = user_agent.lower()
    if any(agent in ua for agent in ALLOWED_AGENTS):
        return False
    return any(agent in ua for agent in DENIED_AGENTS)


def is_suspicious_path(path: str) -> bool:
    return any(pattern.search(path) for pattern in SUSPICIOUS_PATH_PATTERNS)


class BotProtectionMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        rate_limiter: RequestRateLimiter | None = None,
        exempt_prefixes: Iterable[str] = DEFAULT_EXEMPT_PREFIXES,
        front_door: str = "/",
    ):
        """
        Initialize Bot Protection Middleware

        Args:
            app: ASGI application to wrap
            rate_limiter: Coarse per-client limiter, None to disable
            exempt_prefixes: Path prefixes that skip filtering
            front_door: Login page password links are redirected to
        """
        super().__init__(app)
        self.rate_limiter = rate_limiter
        self.exempt_prefixes = tuple(exempt_prefixes)
        self.front_door = front_door

        logger.info(f"BotProtectionMiddleware initialized (rate limiting: {rate_limiter is not None})")

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path

        if path.startswith(self.exempt_prefixes):
            return await call_next(request)

        client = get_client_identifier(request.headers)

        # Layer 1: Suspicious paths, 404 so scanners learn nothing
        if is_suspicious_path(path):
            logger.warning(f"Suspicious path blocked: {path} from {client}")
            return PlainTextResponse("Not Found", status_code=404)

        # Layer 2: User-Agent classification
        user_agent = request.headers.get("user-agent")
        if is_bot_user_agent(user_agent):
            logger.warning(f"Bot blocked: ua={user_agent!r} path={path} client={client}")
            return PlainTextResponse("Forbidden", status_code=403)

        # Layer 3: Coarse rate limit for bots spoofing a browser agent
        if self.rate_limiter:
            is_allowed, retry_after = self.rate_limiter.check(client)
            if not is_allowed:
                logger.warning(f"Request rate limit exceeded for {client}, retry after {retry_after}s")
                return JSONResponse(
                    status_code=429,
                    content={"success": False, "error": "Too many requests"},
                    headers={"Retry-After": str(retry_after)},
                )

        # Layer 4: Proposal links and hardening headers
        response = self._proposal_redirect(request)
        if response is None:
            response = await call_next(request)

        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    def _proposal_redirect(self, request: Request) -> Response | None:
        """Send password links and bare /proposal through the front door."""
        path = request.url.path
        if path != "/proposal" and not path.startswith("/proposal/"):
            return None

        parts = path.split("/")
        proposal_id = parts[2] if len(parts) > 2 else ""
        if not proposal_id:
            return RedirectResponse(self.front_door, status_code=307)

        url_password = request.query_params.get("pw")
        if url_password:
            query = urlencode({"pw": url_password, "return": path})
            return RedirectResponse(f"{self.front_door}?{query}", status_code=307)

        return None
