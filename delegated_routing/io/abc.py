from abc import (
    ABC,
    abstractmethod,
)


class Closer(ABC):
    @abstractmethod
    async def close(self) -> None: ...


class Reader(ABC):
    @abstractmethod
    async def read(self, n: int | None = None) -> bytes:
        """
        Read up to ``n`` bytes, or whatever is available when ``n`` is None.

        Returns ``b""`` once the underlying stream is exhausted.
        """


class ReadCloser(Reader, Closer):
    pass
