from snippet_tracker.logger.pass_logger import PassLogger

__all__ = ["PassLogger"]
