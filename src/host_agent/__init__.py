"""Host telemetry agent: samples CPU, memory and network once a second and
emits one summary record per interval."""

__version__ = "0.3.0"
