"""
Structured logging setup using structlog.
Provides structured logging with different output formats and levels.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union
import structlog
from structlog.stdlib import LoggerFactory


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[Union[str, Path]] = None,
    debug: bool = False
) -> None:
    """
    Set up structured logging with configurable output formats.
    
    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format (json or console)
        log_file: Optional log file path
        debug: Add call-site information to every event
    """
    
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )
    
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if debug:
        processors.append(structlog.processors.CallsiteParameterAdder())
    
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )
    
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        
        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(getattr(logging, log_level.upper()))
        file_handler.setFormatter(logging.Formatter('%(message)s'))
        logging.getLogger().addHandler(file_handler)
    
    logger = structlog.get_logger(__name__)
    logger.info(
        "Logging system initialized",
        level=log_level,
        format=log_format,
        file=str(log_file) if log_file else None,
        debug=debug
    )


class AuthLogger:
    """
    Logger for authentication events.
    Never receives passwords, hashes or tokens.
    """
    
    def __init__(self, name: str = "accounts.auth"):
        self.logger = structlog.get_logger(name)
    
    def log_registration(self, user_id: str, username: str) -> None:
        """Log a new account."""
        self.logger.info("User registered", user_id=user_id, username=username)
    
    def log_login_success(self, user_id: str) -> None:
        """Log a successful login."""
        self.logger.info("User logged in", user_id=user_id)
    
    def log_login_failure(self, user_id: Optional[str], attempts: Optional[int] = None) -> None:
        """Log a rejected login. user_id is None when the email is unknown."""
        self.logger.warning(
            "Login failed",
            user_id=user_id,
            attempts=attempts
        )
    
    def log_lockout(self, user_id: str, minutes_remaining: int) -> None:
        """Log a login attempt against a locked account."""
        self.logger.warning(
            "Login attempt on locked account",
            user_id=user_id,
            minutes_remaining=minutes_remaining
        )
    
    def log_account_change(self, user_id: str, action: str, fields: Optional[list] = None) -> None:
        """Log a profile update or deletion."""
        self.logger.info("Account changed", user_id=user_id, action=action, fields=fields)
