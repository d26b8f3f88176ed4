class Clock:
    _time: int = 0
    _periods: int

    def __init__(self, periods: int):
        self._periods = periods

    def step(self) -> bool:
        """
        Advance the clock by one tick, returns False once the last period is reached.
        """
        if self._time + 1 >= self._periods:
            return False

        self._time += 1
        return True

    @property
    def time(self) -> int:
        return self._time
