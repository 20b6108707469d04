"""Image Relay Main Entry Point

Serverless entry points:
    generate_function(event, context)
    login_function(event, context)

Command line:
    python -m image_relay.main --sideload              JSON-RPC 2.0 over stdio
    python -m image_relay.main hash-password <secret>  bcrypt hash for auth.users
"""

import asyncio
import json
import logging
import signal
import sys
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, Optional

from .application.usecase.authenticate import AuthenticateUseCase
from .application.usecase.generate_image import GenerateImageUseCase
from .domain.service.image_router import ImageRouter
from .domain.service.job_poller import JobPoller
from .infrastructure.auth.bcrypt_verifier import BcryptCredentialVerifier, hash_password
from .infrastructure.config.settings import Settings, load_settings
from .infrastructure.function_handler import GenerateFunctionHandler, LoginFunctionHandler
from .infrastructure.image import build_provider

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO", log_format: str = "json", stream=None) -> None:
    """Configure logging

    Args:
        level: Log level
        log_format: Log format (json/text)
        stream: Target stream (stderr by default)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    for h in logging.root.handlers[:]:
        logging.root.removeHandler(h)

    if log_format == "json":
        logging.basicConfig(
            level=log_level,
            format='{"time":"%(asctime)s","level":"%(levelname)s","name":"%(name)s","message":"%(message)s"}',
            datefmt="%Y-%m-%d %H:%M:%S",
            stream=stream or sys.stderr,
        )
    else:
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            stream=stream or sys.stderr,
        )

    # httpx logs full request URLs at INFO
    logging.getLogger("httpx").setLevel(max(log_level, logging.WARNING))


def create_image_providers(config: Settings) -> dict:
    """Create image provider instances

    Args:
        config: Settings object

    Returns:
        Provider mapping {name: provider_instance}
    """
    providers = {}
    poller = JobPoller(
        interval=config.polling.interval,
        max_attempts=config.polling.max_attempts,
    )

    for name, provider_config in config.providers.items():
        if not provider_config.enabled:
            logger.info(f"Image provider '{name}' is disabled")
            continue
        try:
            providers[name] = build_provider(
                name, provider_config, poller, timeout=config.http.timeout
            )
        except ValueError as e:
            logger.error(f"Skipping image provider '{name}': {e}")
            continue
        logger.info(
            f"Initialized image provider '{name}' "
            f"(adapter={provider_config.adapter}, model={providers[name].model})"
        )

    if not providers:
        logger.warning("No image providers configured")

    return providers


def create_credential_verifier(config: Settings) -> BcryptCredentialVerifier:
    """Create the login credential verifier"""
    verifier = BcryptCredentialVerifier.from_users(config.auth.users)
    if not len(verifier):
        logger.warning("No login users configured; every login will be rejected")
    return verifier


@dataclass
class Application:
    """Wired-up handlers for one process."""
    settings: Settings
    image_router: ImageRouter
    generate_handler: GenerateFunctionHandler
    login_handler: LoginFunctionHandler


def create_application(config: Optional[Settings] = None) -> Application:
    """Build router, use cases and handlers from configuration."""
    config = config or load_settings()

    image_router = ImageRouter(
        providers=create_image_providers(config),
        default_provider=config.default_provider or None,
    )
    logger.info(
        f"Image router initialized with {len(image_router)} provider(s), "
        f"default={image_router.default_provider}"
    )

    generate_use_case = GenerateImageUseCase(image_router=image_router)
    authenticate_use_case = AuthenticateUseCase(verifier=create_credential_verifier(config))

    return Application(
        settings=config,
        image_router=image_router,
        generate_handler=GenerateFunctionHandler(generate_use_case),
        login_handler=LoginFunctionHandler(authenticate_use_case),
    )


@lru_cache(maxsize=1)
def get_application() -> Application:
    """Process-wide application, built on first use (warm invocations reuse it)."""
    config = load_settings()
    setup_logging(config.logging.level, config.logging.format)
    return create_application(config)


def generate_function(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Serverless entry point for image generation."""
    return asyncio.run(get_application().generate_handler.handle(event))


def login_function(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Serverless entry point for login."""
    return asyncio.run(get_application().login_handler.handle(event))


def register_sideload_methods(handler, app: Application) -> None:
    """Expose the application over JSON-RPC."""

    async def invoke(function_handler, params: dict) -> dict:
        response = await function_handler.handle({"httpMethod": "POST", "body": params})
        return {"status": response["statusCode"], "body": json.loads(response["body"])}

    async def handle_generate(params: dict) -> dict:
        return await invoke(app.generate_handler, params)

    async def handle_login(params: dict) -> dict:
        return await invoke(app.login_handler, params)

    async def handle_shutdown(params: dict) -> dict:
        logger.info("Received shutdown, stopping sideload handler")
        handler.stop()
        return {}

    handler.register_method("initialize", lambda p: {
        "name": app.settings.server.name,
        "version": "1.0.0",
        "capabilities": {"providers": app.image_router.list_providers()},
    })
    handler.register_method("generate", handle_generate)
    handler.register_method("login", handle_login)
    handler.register_method("providers/list", lambda p: app.image_router.list_providers())
    handler.register_method("ping", lambda p: {"pong": True})
    handler.register_method("shutdown", handle_shutdown)


async def run_sideload(app: Application) -> None:
    """Run in sideload mode: JSON-RPC 2.0 over stdin/stdout."""
    from .sideload.handler import SideloadHandler

    logger.info("Starting Image Relay in SIDELOAD mode (JSON-RPC 2.0 over stdio)")
    handler = SideloadHandler()
    register_sideload_methods(handler, app)

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, handler.stop)

    await handler.run()
    logger.info("Sideload mode exited")


def main(argv=None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)

    if argv and argv[0] == "hash-password":
        if len(argv) != 2:
            print("usage: python -m image_relay.main hash-password <password>", file=sys.stderr)
            return 2
        print(hash_password(argv[1]))
        return 0

    if "--sideload" in argv:
        try:
            config = load_settings()
            setup_logging(config.logging.level, config.logging.format)
            asyncio.run(run_sideload(create_application(config)))
        except Exception as e:
            logging.error(f"Fatal sideload error: {e}", exc_info=True)
            return 1
        return 0

    print(__doc__.strip(), file=sys.stderr)
    return 2


if __name__ == "__main__":
    sys.exit(main())
