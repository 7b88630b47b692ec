from ephemeral_share.config import RetentionConfig


def max_age(size_bytes: int, config: RetentionConfig) -> float:
    """
    Максимальный срок хранения файла в днях:

        min_fileage + (max_fileage - min_fileage) * (1 - size / max_filesize) ** decay_exponent

    Чем больше файл, тем раньше он удаляется. Нижнюю границу min_fileage
    соблюдает Purger, а не эта функция.
    """
    ratio = min(max(size_bytes / config.max_filesize, 0.0), 1.0)
    span = config.max_fileage - config.min_fileage
    return config.min_fileage + span * (1.0 - ratio) ** config.decay_exponent
