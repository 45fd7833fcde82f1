"""Pulumi program: hello Lambda behind a catch-all API Gateway proxy."""

import pulumi
import pulumi_aws as aws

from hello_api import HelloProxyApi
from stack_config import CONFIG_NAMESPACE, load_settings, require_package

settings = load_settings(pulumi.Config(CONFIG_NAMESPACE), pulumi.Config('aws'))
package_path = require_package(settings)

pulumi.log.info(
    f'Declaring {settings.function_name} ({settings.runtime}) in {settings.region}, '
    f'stage {settings.stage_name}'
)

provider = aws.Provider('aws', region=settings.region)

hello = HelloProxyApi(
    'hello',
    settings,
    code=pulumi.FileArchive(str(package_path)),
    opts=pulumi.ResourceOptions(providers=[provider]),
)

pulumi.export('base_url', hello.base_url)
pulumi.export('function_name', hello.function.name)
pulumi.export('function_arn', hello.function.arn)
pulumi.export('role_arn', hello.role.arn)
pulumi.export('rest_api_id', hello.rest_api.id)
