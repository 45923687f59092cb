from abc import ABC, abstractmethod

class ClockAdapter(ABC):
    """
    An abstract base class that defines the standard interface for the
    external clocks a playback engine can be driven by.
    """

    @abstractmethod
    def now_ms(self) -> float:
        """
        Returns the current instant in milliseconds. Only differences between
        successive readings are meaningful.
        """
        pass
