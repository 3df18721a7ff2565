import logging
import os
import sys
import traceback

import uvicorn

# Configure logging to stdout (App Service reads from here)
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)

# Add the src directory to Python path
current_dir = os.path.dirname(os.path.abspath(__file__))
src_path = os.path.join(current_dir, 'src')
sys.path.insert(0, src_path)

logger.info("=" * 60)
logger.info("Evolua Patient Management Startup")
logger.info("=" * 60)
logger.info("Python version: %s", sys.version.split()[0])
logger.info("Current directory: %s", current_dir)

# Log critical environment variables (without exposing secrets)
logger.info("Environment Configuration:")
logger.info("  PORT: %s", os.environ.get('PORT', '8000'))
logger.info("  APP_ENV: %s", os.environ.get('APP_ENV', 'not set'))
logger.info("  MONGO_URI: %s", 'set' if os.environ.get('MONGO_URI') else 'not set (in-memory storage)')
logger.info("  MONGO_DB_NAME: %s", os.environ.get('MONGO_DB_NAME', 'not set'))
logger.info(
    "  AZURE_BLOB_CONNECTION_STRING: %s",
    'set' if os.environ.get('AZURE_BLOB_CONNECTION_STRING') else 'not set (in-memory documents)',
)
logger.info("  SECURITY_API_KEYS: %s", 'set' if os.environ.get('SECURITY_API_KEYS') else 'not set')

if __name__ == "__main__":
    try:
        from evolua.core.config import get_settings

        try:
            settings = get_settings()
        except ValueError as ve:
            logger.error("❌ Configuration validation failed: %s", ve)
            logger.error(traceback.format_exc())
            logger.error("Common configuration issues:")
            logger.error("  1. MONGO_URI must start with mongodb:// or mongodb+srv://")
            logger.error("  2. DOCUMENT_MAX_FILE_SIZE_MB must be between 1 and 50")
            logger.error("  3. APP_ENV must be development, staging, production or testing")
            sys.exit(1)

        port = int(os.environ.get("PORT", settings.port))
        host = os.environ.get("HOST", settings.host)

        logger.info("Step 1: Importing evolua.api.app...")
        try:
            from evolua.api.app import app  # noqa: F401
            logger.info("✅ Successfully imported evolua.api.app")
        except Exception as import_error:
            logger.error("❌ Failed to import evolua.api.app: %s", import_error)
            logger.error(traceback.format_exc())
            sys.exit(1)

        logger.info("Step 2: Starting uvicorn server on %s:%s...", host, port)
        uvicorn.run(
            "evolua.api.app:app",
            host=host,
            port=port,
            workers=1,
            log_level="info",
            access_log=True,
            timeout_keep_alive=75,
            timeout_graceful_shutdown=30,
        )
    except KeyboardInterrupt:
        logger.info("Shutting down due to keyboard interrupt")
        sys.exit(0)
    except Exception as e:
        logger.error("❌ CRITICAL: Failed to start application")
        logger.error("Error: %s (%s)", e, type(e).__name__)
        logger.error(traceback.format_exc())
        sys.exit(1)
