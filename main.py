"""Main entry point for the PaperMind pipeline."""

import sys

import hydra
from omegaconf import DictConfig

from papermind_pipeline.cli.commands import (
    serve_command,
    status_command,
    tick_command,
    upload_command,
)
from papermind_pipeline.clients.exceptions import PipelineClientError
from papermind_pipeline.domain.config import ConfigError, build_app_config
from papermind_pipeline.orchestration.builder import build_batch_processor
from papermind_pipeline.utils.logging import setup_logging

COMMANDS = {
    "tick": tick_command,
    "status": status_command,
    "upload": upload_command,
    "serve": serve_command,
}


@hydra.main(version_base=None, config_path="papermind_pipeline/conf", config_name="config")
def main(cfg: DictConfig) -> int:
    """Main entry point for the pipeline.

    Args:
        cfg: Hydra configuration object

    Returns:
        Exit code: 0 for success, 1 for partial failure, 2 for complete failure,
        3 for configuration or fatal errors
    """
    logger = setup_logging()

    try:
        app_cfg = build_app_config(cfg)

        command = COMMANDS.get(app_cfg.command)
        if command is None:
            raise ConfigError(
                f"Unknown command '{app_cfg.command}'. "
                f"Options: {', '.join(sorted(COMMANDS))}"
            )

        batch_processor = build_batch_processor(app_cfg)
        return command(app_cfg, logger, batch_processor)

    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 3
    except PipelineClientError as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 3
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 3


if __name__ == "__main__":
    sys.exit(main())  # type: ignore[call-arg]
