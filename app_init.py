"""
Application Initialization Module
Builds the Flask app with config, logging, security, the mock store,
services, the AI service, health checks and blueprints
"""
import os
import click
from flask import Flask
from config import get_config
from logging_config import setup_logging
from ai_service import AIService
from security import setup_security
from health_checks import register_health_checks
from database import MockStore, import_folder, merge_into_folder, seed_store
from services import ServiceContainer
import logging

logger = logging.getLogger(__name__)


def create_app(config_class=None):
    """
    Application factory that creates and configures Flask app with all infrastructure

    Args:
        config_class: Config class to load; defaults to the one selected by FLASK_ENV

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)

    app.config.from_object(config_class or get_config())

    setup_logging(app)

    logger.info("=" * 60)
    logger.info("Initializing ServiceRig Dashboard")
    logger.info("=" * 60)
    logger.info(f"Environment: {os.environ.get('FLASK_ENV', 'development')}")
    logger.info(f"Debug mode: {app.debug}")

    # Setup security (CORS, headers, error handlers)
    setup_security(app, app.config)

    store = initialize_store(app)
    app.services = ServiceContainer(store, app.config)

    app.ai_service = initialize_ai_service(app)

    register_health_checks(app)

    from app import register_blueprints
    register_blueprints(app)

    register_cli_commands(app)

    logger.info("Application initialization complete")
    logger.info("=" * 60)

    return app


def initialize_store(app):
    """
    Create the mock store, seed demo data and import any configured export folder

    Args:
        app: Flask application instance

    Returns:
        MockStore instance
    """
    store = MockStore(latency_ms=app.config.get('STORE_LATENCY_MS', 0))

    if app.config.get('SEED_DEFAULT_DATA', True):
        seed_store(store)

    folder = app.config.get('SEED_DATA_FOLDER')
    if folder:
        counts = import_folder(store, folder)
        logger.info(f"Imported {sum(counts.values())} records from {folder}")

    logger.info(f"Mock store ready: {store.collections()}")
    return store


def initialize_ai_service(app):
    """
    Initialize centralized AI service manager

    Args:
        app: Flask application instance

    Returns:
        AIService instance
    """
    ai_service = AIService(app.config)

    available_services = []
    if ai_service.is_available('claude'):
        available_services.append('Claude')
    if ai_service.is_available('search'):
        available_services.append('Tavily Search')

    if available_services:
        logger.info(f"AI Services initialized: {', '.join(available_services)}")
    else:
        logger.warning("No AI services configured - check API keys")

    return ai_service


def register_cli_commands(app):
    """Flask CLI commands"""

    @app.cli.command('import-data')
    @click.argument('folder')
    def import_data_command(folder):
        """Merge every <collection>.json export in FOLDER into SEED_DATA_FOLDER.

        The server reads SEED_DATA_FOLDER on startup, so imported documents
        survive restarts of the in-memory store.
        """
        target = app.config.get('SEED_DATA_FOLDER')
        if not target:
            raise click.ClickException("SEED_DATA_FOLDER is not set; nowhere to persist the import.")

        try:
            counts = merge_into_folder(folder, target)
        except (FileNotFoundError, ValueError) as e:
            raise click.ClickException(str(e))

        import_folder(app.services.store, folder)

        for collection, count in counts.items():
            click.echo(f"{collection}: {count} documents")
        click.echo(f"Imported {sum(counts.values())} documents.")
