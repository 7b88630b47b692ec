import logging
import secrets
import string
from typing import Awaitable, Callable, Iterator, Optional

from ephemeral_share.config import IdentifierConfig
from ephemeral_share.exceptions import IdentifierSpaceExhausted

ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits + "-_"
TRIES_PER_LENGTH = 3
# NAME_MAX большинства файловых систем, в байтах
NAME_MAX = 255

logger = logging.getLogger(__name__)


def random_id(length: int) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


class IdentifierAllocator:
    """
    Подбирает свободные случайные имена файлов.

    На каждой длине делается TRIES_PER_LENGTH попыток; если все имена заняты,
    длина увеличивается на единицу. Длина никогда не уменьшается.
    """

    def __init__(self, config: IdentifierConfig, rng: Callable[[int], str] = random_id):
        self._config = config
        self._rng = rng

    def clamp(self, requested: Optional[int]) -> int:
        if requested is None:
            return self._config.min_id_length
        return max(self._config.min_id_length, min(self._config.max_id_length, requested))

    def candidates(self, requested: Optional[int], suffix: str = "") -> Iterator[tuple[str, int]]:
        """Бесконечный поток кандидатов `(id, length)`."""
        length = self.clamp(requested)
        while True:
            if length + len(suffix.encode()) > NAME_MAX:
                raise IdentifierSpaceExhausted(
                    f"No free identifier left below {NAME_MAX} characters"
                )
            for _ in range(TRIES_PER_LENGTH):
                yield self._rng(length), length
            logger.debug(f"All {TRIES_PER_LENGTH} candidates of length {length} collided, growing.")
            length += 1

    async def claim(
        self,
        requested: Optional[int],
        try_create: Callable[[str], Awaitable[bool]],
        suffix: str = "",
    ) -> tuple[str, int]:
        """
        `try_create(name)` должен атомарно создать `name` и вернуть False,
        если имя уже занято. Проигранная гонка считается обычной коллизией.
        """
        candidates = self.candidates(requested, suffix)
        while True:
            identifier, length = next(candidates)
            if await try_create(identifier + suffix):
                return identifier, length
            logger.debug(f"Name collision on {identifier}{suffix} (length {length}).")

    def allocate(
        self,
        requested: Optional[int],
        exists: Callable[[str], bool],
        suffix: str = "",
    ) -> tuple[str, int]:
        """Первый кандидат, для которого `exists(name)` ложно."""
        for identifier, length in self.candidates(requested, suffix):
            if not exists(identifier + suffix):
                return identifier, length
        raise AssertionError("unreachable")  # candidates() never ends without raising
