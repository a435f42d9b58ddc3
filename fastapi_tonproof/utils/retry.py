import asyncio
import inspect
from typing import Awaitable, Callable, TypeVar

from loguru import logger

T = TypeVar("T")


async def with_retry(
    operation: Callable[[], T | Awaitable[T]],
    max_attempts: int = 3,
    delay_ms: int = 1000,
    retry_on: tuple[type[Exception], ...] = (Exception,),
) -> T:
    """
    Выполняет операцию с фиксированной паузой между попытками.

    :param operation: Функция без аргументов; может вернуть значение или awaitable.
    :param max_attempts: Сколько всего попыток сделать.
    :param delay_ms: Пауза между попытками в миллисекундах (без экспоненты).
    :param retry_on: Типы ошибок, после которых пробуем снова; остальные
        пробрасываются сразу.
    :return: Результат первой успешной попытки.
    :raises Exception: Последняя ошибка, если все попытки провалились.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    last_error: Exception | None = None
    for attempt in range(1, max_attempts + 1):
        try:
            result = operation()
            if inspect.isawaitable(result):
                result = await result
            return result
        except Exception as e:
            if not isinstance(e, retry_on):
                raise
            last_error = e
            logger.warning("Attempt {}/{} failed: {}", attempt, max_attempts, e)
            if attempt < max_attempts:
                await asyncio.sleep(delay_ms / 1000)

    raise last_error
