"""
Serverless entry point (Function Compute style ``handler(event, context)``).

Both the timer trigger and the HTTP trigger land here; the run is performed
synchronously and always reported as successful, since per-instance failures
are logged and retried naturally on the next scheduled run.
"""

import logging
import os

from traffic_breaks.core.config import parse_flag
from traffic_breaks.services.operations import handle_schedule

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def handler(event, context):
    """
    Run one traffic check and control pass.

    Event can optionally include:
    - dry_run: bool or flag string ("true", "false", "1", "0") - Override
      the DRY_RUN environment variable
    """
    logger.info("Traffic check triggered")

    env = dict(os.environ)
    if isinstance(event, dict) and 'dry_run' in event:
        env['DRY_RUN'] = 'true' if parse_flag(event['dry_run']) else 'false'

    try:
        report = handle_schedule(env)
    except Exception:
        logger.exception("Unexpected error during traffic check")
    else:
        if report is not None and not report.succeeded:
            logger.warning("Run finished with errors, see log above")

    return {
        'statusCode': 200,
        'body': 'Executed successfully',
    }
