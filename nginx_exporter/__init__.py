from nginx_exporter.collector import StatusCollector

__version__ = "0.1.0"

__all__ = ["StatusCollector"]
