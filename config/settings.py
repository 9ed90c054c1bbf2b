"""
Configuration Settings for the z/OS FTP job connector
Manages application configuration from environment and config files
"""

import os
import re
import yaml
import json
from typing import Dict, Any, Optional
from pathlib import Path
from pydantic import BaseModel, Field, ValidationInfo, field_validator
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class ConnectionConfig(BaseModel):
    """FTP server connection configuration"""
    host: str = Field(default="localhost", description="LPAR name or IP address")
    port: int = Field(default=21, ge=1, le=65535, description="FTP port")
    timeout: float = Field(default=30.0, gt=0, description="Socket timeout in seconds")

    @field_validator('host')
    @classmethod
    def strip_whitespace(cls, v):
        """Hosts never contain whitespace"""
        v = re.sub(r"\s", "", v)
        if not v:
            raise ValueError("Please set a server")
        return v


class CredentialsConfig(BaseModel):
    """FTP credentials configuration"""
    username: Optional[str] = Field(default=None, validate_default=True, description="User ID")
    password: Optional[str] = Field(default=None, validate_default=True, description="User password")

    @field_validator('username', 'password', mode='before')
    @classmethod
    def load_from_env(cls, v, info: ValidationInfo):
        """Load from environment if not set"""
        if v is None:
            env_key = f"ZFTP_{info.field_name.upper()}"
            v = os.getenv(env_key)
        if v is not None:
            v = re.sub(r"\s", "", v)
        return v


class JobConfig(BaseModel):
    """Job submission configuration"""
    wait: bool = Field(default=True, description="Wait for the job to complete")
    wait_time: int = Field(default=0, ge=0, description="Minutes to wait, 0 waits forever")
    delete_log: bool = Field(default=False, description="Delete job log from spool afterwards")
    jes_interface_level1: bool = Field(default=False, description="Server runs JESINTERFACELEVEL=1")
    max_cc: str = Field(default="0000", description="Highest accepted completion code")
    poll_interval: float = Field(default=10.0, gt=0, description="Seconds between spool polls")
    job_log_to_console: bool = Field(default=False, description="Print the job log")

    @field_validator('max_cc', mode='before')
    @classmethod
    def check_max_cc(cls, v):
        """Value must be up to 4 decimal digits or empty"""
        if v is None:
            return "0000"
        v = str(v).strip()
        if not v:
            return "0000"
        if not re.fullmatch(r"\d{1,4}", v):
            raise ValueError("Value must be 4 decimal digits or empty")
        return v.zfill(4)


class LoggingConfig(BaseModel):
    """Logging configuration"""
    level: str = Field(default="INFO", description="Log level")
    file: Optional[str] = Field(default=None, description="Log file path")
    format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    console: bool = Field(default=True, description="Enable console logging")


class Settings(BaseModel):
    """Application settings"""
    connection: ConnectionConfig = Field(default_factory=ConnectionConfig)
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)
    job: JobConfig = Field(default_factory=JobConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_file: Optional[str] = None) -> "Settings":
        """
        Load settings from file and environment

        Args:
            config_file: Path to configuration file

        Returns:
            Settings: Loaded settings
        """
        settings_dict = {}

        # Load from config file if provided
        if config_file:
            config_path = Path(config_file)
            if config_path.exists():
                with open(config_path, 'r') as f:
                    if config_path.suffix == '.yaml' or config_path.suffix == '.yml':
                        settings_dict = yaml.safe_load(f) or {}
                    elif config_path.suffix == '.json':
                        settings_dict = json.load(f)

        # Override with environment variables
        settings_dict = cls._merge_env_vars(settings_dict)

        return cls(**settings_dict)

    @staticmethod
    def _merge_env_vars(settings_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge environment variables into settings

        Args:
            settings_dict: Existing settings

        Returns:
            Dict[str, Any]: Merged settings
        """
        # Check for connection settings
        if os.getenv('ZFTP_HOST'):
            settings_dict.setdefault('connection', {})['host'] = os.getenv('ZFTP_HOST')
        if os.getenv('ZFTP_PORT'):
            settings_dict.setdefault('connection', {})['port'] = int(os.getenv('ZFTP_PORT'))

        # Check for credentials
        if os.getenv('ZFTP_USERNAME'):
            settings_dict.setdefault('credentials', {})['username'] = os.getenv('ZFTP_USERNAME')
        if os.getenv('ZFTP_PASSWORD'):
            settings_dict.setdefault('credentials', {})['password'] = os.getenv('ZFTP_PASSWORD')

        # Check for job settings
        if os.getenv('ZFTP_WAIT_TIME'):
            settings_dict.setdefault('job', {})['wait_time'] = int(os.getenv('ZFTP_WAIT_TIME'))
        if os.getenv('ZFTP_MAX_CC'):
            settings_dict.setdefault('job', {})['max_cc'] = os.getenv('ZFTP_MAX_CC')

        return settings_dict

    def save(self, config_file: str):
        """
        Save settings to file

        Args:
            config_file: Path to save configuration
        """
        config_path = Path(config_file)
        settings_dict = self.model_dump(exclude_none=True)

        # Don't save sensitive information
        if 'credentials' in settings_dict:
            if 'password' in settings_dict['credentials']:
                settings_dict['credentials']['password'] = '***REDACTED***'

        with open(config_path, 'w') as f:
            if config_path.suffix == '.yaml' or config_path.suffix == '.yml':
                yaml.safe_dump(settings_dict, f, default_flow_style=False)
            elif config_path.suffix == '.json':
                json.dump(settings_dict, f, indent=2)


def get_settings(config_file: Optional[str] = None) -> Settings:
    """
    Get application settings

    Args:
        config_file: Optional config file path

    Returns:
        Settings: Application settings
    """
    # Check for default config files
    if not config_file:
        for filename in ['zftp.yaml', 'zftp.yml', 'zftp.json', '.zftp.yaml']:
            if Path(filename).exists():
                config_file = filename
                break

    return Settings.load(config_file)
