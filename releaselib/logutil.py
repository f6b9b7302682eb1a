import logging


class EntityLoggingAdapter(logging.LoggerAdapter):
    """Prefixes every message with the entity (platform, bucket...) it is about"""

    def process(self, msg, kwargs):
        return '[%s] %s' % (self.extra['entity'], msg), kwargs


def get_entity_logger(logger: logging.Logger, entity: str) -> EntityLoggingAdapter:
    return EntityLoggingAdapter(logger, {'entity': entity})
