"""Join code generation.

Codes are 6 characters from A-Z and 0-9, drawn from the OS CSPRNG. Each
random byte is reduced modulo the alphabet size; the small bias from
256 % 36 != 0 is accepted.

The generator asks an existence oracle whether a candidate is taken and
retries a bounded number of times. The code it returns was free when it was
checked; the unique constraint on ``lobbies.join_code`` remains the final
arbiter.
"""

import logging
import secrets
from collections.abc import Awaitable, Callable

from lobbyhub.lobby.errors import JoinCodeCollisionError, JoinCodeOracleError
from lobbyhub.lobby.models import JOIN_CODE_ALPHABET, JOIN_CODE_LENGTH, JOIN_CODE_MAX_RETRIES

logger = logging.getLogger(__name__)

ExistsOracle = Callable[[str], Awaitable[bool]]


def generate_random_code(length: int = JOIN_CODE_LENGTH) -> str:
    """Generate a random code without any collision check."""
    alphabet_size = len(JOIN_CODE_ALPHABET)
    return "".join(JOIN_CODE_ALPHABET[b % alphabet_size] for b in secrets.token_bytes(length))


class JoinCodeGenerator:
    """Generates join codes that are unused at check time."""

    def __init__(self, exists: ExistsOracle, max_retries: int = JOIN_CODE_MAX_RETRIES) -> None:
        """Initialize the generator.

        Args:
            exists: Async callable returning True if a code is already taken
            max_retries: Number of candidates to try before giving up
        """
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self._exists = exists
        self.max_retries = max_retries

    async def generate(self) -> str:
        """Generate a join code.

        Returns:
            An uppercase 6-character code

        Raises:
            JoinCodeOracleError: If the existence check fails
            JoinCodeCollisionError: If every attempt collided
        """
        for attempt in range(1, self.max_retries + 1):
            code = generate_random_code()

            try:
                taken = await self._exists(code)
            except Exception as e:
                raise JoinCodeOracleError(f"Failed to check join code collision: {e}") from e

            if not taken:
                return code

            logger.debug(f"Join code {code} already taken (attempt {attempt}/{self.max_retries})")

        logger.error(f"Failed to generate a unique join code after {self.max_retries} attempts")
        raise JoinCodeCollisionError(
            f"Failed to generate unique join code after {self.max_retries} attempts"
        )
