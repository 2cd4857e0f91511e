from redis import Redis
from rq import Queue
from screenflow.settings import settings


def get_redis(decode_responses: bool = True) -> Redis:
    return Redis.from_url(settings.REDIS_URL, decode_responses=decode_responses)


def get_queue() -> Queue:
    # RQ stores pickled job data; the connection must not decode
    return Queue(
        settings.RQ_QUEUE_NAME,
        connection=get_redis(decode_responses=False),
        default_timeout=settings.RQ_JOB_TIMEOUT_SEC,
    )
