"""
Typed stack settings for the hello proxy stack.

Values come from the Pulumi stack configuration (``Pulumi.<stack>.yaml``)
under the ``hello`` namespace, with the region taken from ``aws:region``.
Keys are camelCase in the YAML file and snake_case on the model.
"""

from pathlib import Path
from typing import Annotated, Optional, Protocol

import pulumi
from pydantic import BaseModel, ConfigDict, Field, ValidationError

CONFIG_NAMESPACE = 'hello'
DEFAULT_REGION = 'us-east-1'
BASIC_EXECUTION_POLICY_ARN = 'arn:aws:iam::aws:policy/service-role/AWSLambdaBasicExecutionRole'

INFRA_DIR = Path(__file__).resolve().parent
DEFAULT_PACKAGE_PATH = INFRA_DIR.parent / 'build' / 'hello.zip'


class ConfigSource(Protocol):
    def get(self, key: str) -> Optional[str]: ...


class StackConfigError(pulumi.RunError):
    """Raised when the stack cannot be declared from the current configuration."""


class StackSettings(BaseModel):
    """Settings for every resource in the stack."""

    model_config = ConfigDict(frozen=True)

    region: Annotated[str, Field(
        description='AWS region all resources are created in',
        pattern=r'^[a-z]{2}(-gov)?-[a-z]+-\d$',
    )] = DEFAULT_REGION

    role_name: Annotated[str, Field(
        description='IAM role assumed by the function',
        min_length=1,
        max_length=64,
    )] = 'hello_lambda_role'

    function_name: Annotated[str, Field(
        description='Lambda function name',
        pattern=r'^[A-Za-z0-9_-]{1,64}$',
    )] = 'hello_lambda'

    handler: Annotated[str, Field(
        description='Handler entry point inside the deployment package',
        pattern=r'^[A-Za-z_][\w.]*\.[A-Za-z_]\w*$',
    )] = 'lambda_function.lambda_handler'

    runtime: Annotated[str, Field(
        description='Managed Lambda runtime identifier',
        pattern=r'^python3\.\d+$',
    )] = 'python3.12'

    package_path: Annotated[Path, Field(
        description='Zip archive produced by scripts/build.py',
    )] = DEFAULT_PACKAGE_PATH

    api_name: Annotated[str, Field(
        description='API Gateway REST API name',
        min_length=1,
    )] = 'hello_api'

    stage_name: Annotated[str, Field(
        description='API Gateway stage name',
        pattern=r'^[A-Za-z0-9_]+$',
    )] = 'dev'

    memory_size: Annotated[int, Field(
        description='Function memory in MB',
        ge=128,
        le=10240,
    )] = 128

    timeout: Annotated[int, Field(
        description='Function timeout in seconds',
        ge=1,
        le=29,
    )] = 10

    log_retention_days: Annotated[int, Field(
        description='CloudWatch log retention for the function log group',
        ge=1,
    )] = 7

    log_level: Annotated[str, Field(
        description='Powertools log level inside the function',
        pattern=r'^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$',
    )] = 'INFO'


# snake_case model field -> camelCase config key
CONFIG_KEYS = {
    'role_name': 'roleName',
    'function_name': 'functionName',
    'handler': 'handler',
    'runtime': 'runtime',
    'package_path': 'packagePath',
    'api_name': 'apiName',
    'stage_name': 'stageName',
    'memory_size': 'memorySize',
    'timeout': 'timeout',
    'log_retention_days': 'logRetentionDays',
    'log_level': 'logLevel',
}


def load_settings(config: ConfigSource, aws_config: ConfigSource) -> StackSettings:
    """
    Build validated stack settings from Pulumi configuration.

    Args:
        config: Configuration for the ``hello`` namespace
        aws_config: Configuration for the ``aws`` namespace

    Returns:
        Validated settings

    Raises:
        StackConfigError: If any configured value fails validation
    """
    values = {}
    for field, key in CONFIG_KEYS.items():
        value = config.get(key)
        if value is not None:
            values[field] = value

    region = aws_config.get('region')
    if region is not None:
        values['region'] = region

    package_path = values.get('package_path')
    if package_path is not None and not Path(package_path).is_absolute():
        # Pulumi runs the program from this directory
        values['package_path'] = INFRA_DIR / package_path

    try:
        return StackSettings(**values)
    except ValidationError as e:
        problems = '; '.join(
            f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}"
            for error in e.errors()
        )
        raise StackConfigError(f'Invalid stack configuration: {problems}') from e


def require_package(settings: StackSettings) -> Path:
    """Fail early with a useful message when the deployment zip is missing."""
    if not settings.package_path.is_file():
        raise StackConfigError(
            f'Deployment package {settings.package_path} not found. '
            'Run `python scripts/build.py` before `pulumi up`.'
        )
    return settings.package_path
