"""Scheduled cleanup of expired mappings

Invoked by an EventBridge schedule (rate = `sweep_interval_seconds`). Runs a
single ExpirySweeper cycle against the mapping store and reports the outcome
as a JSON diagnostic. Deploy with reserved concurrency 1 so that scheduled
invocations never overlap.
"""

import json
import logging

from snaplink.types import LambdaEvent, LambdaContext, LambdaResponse
from snaplink.dao.dynamodb import MappingDynamoDBDAO
from snaplink.services import ExpirySweeper
from snaplink.utils import load_config, guarantee_500_response, push_metrics, ShortenerSettings
from snaplink.lambdas.sweep_expired.constants import SUCCESS, ERROR


logger = logging.getLogger(__name__)


@guarantee_500_response
@push_metrics('sweep_expired')
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    app_config = load_config('sweep_expired')
    settings = ShortenerSettings.from_mapping(app_config.get('shortener'))

    sweeper = ExpirySweeper(
        dao=MappingDynamoDBDAO(**app_config['dynamodb'], healthcheck=False),
        interval=settings.sweep_interval,
    )
    deleted = sweeper.sweep()

    if deleted is None:
        logger.error('Expiry sweep failed.', extra={'event': ERROR})
        return {'statusCode': 500, 'body': json.dumps({'status': ERROR, 'deleted': 0})}

    logger.info('Expiry sweep finished.', extra={'event': SUCCESS, 'deleted': deleted})
    return {'statusCode': 200, 'body': json.dumps({'status': SUCCESS, 'deleted': deleted})}
