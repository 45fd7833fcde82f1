"""
Hello proxy API component.

Declares the Lambda function, its execution role and the REST API that
proxies every request to it:

- IAM role trusted by the Lambda service, with the basic execution policy
- Lambda function built from the zip produced by scripts/build.py
- REST API with a greedy ``{proxy+}`` resource and the root resource, both
  accepting ANY method without authorization
- AWS_PROXY integrations, a deployment and a stage
- Invoke permission for the API Gateway service principal
"""

import hashlib
import json
from typing import List, Optional

import pulumi
import pulumi_aws as aws

from stack_config import BASIC_EXECUTION_POLICY_ARN, StackSettings

LAMBDA_TRUST_POLICY = json.dumps({
    'Version': '2012-10-17',
    'Statement': [{
        'Effect': 'Allow',
        'Action': 'sts:AssumeRole',
        'Principal': {
            'Service': 'lambda.amazonaws.com',
        },
    }],
})

PROXY_PATH_PART = '{proxy+}'


def redeployment_hash(ids: List[str]) -> str:
    """Stable digest of the API shape; a new value forces a new deployment."""
    return hashlib.sha1(json.dumps(sorted(ids)).encode('utf-8')).hexdigest()


class HelloProxyApi(pulumi.ComponentResource):
    """Lambda function fronted by a catch-all API Gateway REST API."""

    def __init__(
        self,
        name: str,
        settings: StackSettings,
        code: pulumi.Archive,
        opts: Optional[pulumi.ResourceOptions] = None,
    ):
        super().__init__('hello:aws:ProxyApi', name, None, opts)
        child = pulumi.ResourceOptions(parent=self)

        self.role = aws.iam.Role(
            f'{name}-role',
            name=settings.role_name,
            assume_role_policy=LAMBDA_TRUST_POLICY,
            opts=child,
        )

        self.basic_execution = aws.iam.RolePolicyAttachment(
            f'{name}-basic-execution',
            role=self.role.name,
            policy_arn=BASIC_EXECUTION_POLICY_ARN,
            opts=child,
        )

        self.log_group = aws.cloudwatch.LogGroup(
            f'{name}-logs',
            name=f'/aws/lambda/{settings.function_name}',
            retention_in_days=settings.log_retention_days,
            opts=child,
        )

        self.function = aws.lambda_.Function(
            f'{name}-function',
            name=settings.function_name,
            role=self.role.arn,
            handler=settings.handler,
            runtime=settings.runtime,
            code=code,
            memory_size=settings.memory_size,
            timeout=settings.timeout,
            environment=aws.lambda_.FunctionEnvironmentArgs(
                variables={
                    'POWERTOOLS_SERVICE_NAME': settings.function_name,
                    'LOG_LEVEL': settings.log_level,
                    'STAGE_NAME': settings.stage_name,
                },
            ),
            opts=pulumi.ResourceOptions(
                parent=self,
                depends_on=[self.basic_execution, self.log_group],
            ),
        )

        self.rest_api = aws.apigateway.RestApi(
            f'{name}-api',
            name=settings.api_name,
            opts=child,
        )

        self.proxy_resource = aws.apigateway.Resource(
            f'{name}-proxy',
            rest_api=self.rest_api.id,
            parent_id=self.rest_api.root_resource_id,
            path_part=PROXY_PATH_PART,
            opts=child,
        )

        # The greedy proxy does not match "/", so the root gets its own pair
        self.proxy_method, self.proxy_integration = self._any_method(
            f'{name}-proxy', self.proxy_resource.id
        )
        self.root_method, self.root_integration = self._any_method(
            f'{name}-root', self.rest_api.root_resource_id
        )

        self.deployment = aws.apigateway.Deployment(
            f'{name}-deployment',
            rest_api=self.rest_api.id,
            triggers={
                'redeployment': pulumi.Output.all(
                    self.proxy_resource.id,
                    self.proxy_method.id,
                    self.proxy_integration.id,
                    self.root_method.id,
                    self.root_integration.id,
                ).apply(redeployment_hash),
            },
            opts=pulumi.ResourceOptions(
                parent=self,
                depends_on=[self.proxy_integration, self.root_integration],
            ),
        )

        self.stage = aws.apigateway.Stage(
            f'{name}-stage',
            rest_api=self.rest_api.id,
            deployment=self.deployment.id,
            stage_name=settings.stage_name,
            opts=child,
        )

        self.permission = aws.lambda_.Permission(
            f'{name}-apigw-invoke',
            statement_id='AllowAPIGatewayInvoke',
            action='lambda:InvokeFunction',
            function=self.function.name,
            principal='apigateway.amazonaws.com',
            source_arn=self.rest_api.execution_arn.apply(lambda arn: f'{arn}/*/*'),
            opts=child,
        )

        self.base_url = self.stage.invoke_url

        self.register_outputs({
            'base_url': self.base_url,
            'function_name': self.function.name,
            'function_arn': self.function.arn,
            'role_arn': self.role.arn,
            'rest_api_id': self.rest_api.id,
        })

    def _any_method(self, name: str, resource_id: pulumi.Input[str]):
        method = aws.apigateway.Method(
            f'{name}-method',
            rest_api=self.rest_api.id,
            resource_id=resource_id,
            http_method='ANY',
            authorization='NONE',
            opts=pulumi.ResourceOptions(parent=self),
        )

        # Lambda proxy integrations are always invoked with POST
        integration = aws.apigateway.Integration(
            f'{name}-integration',
            rest_api=self.rest_api.id,
            resource_id=method.resource_id,
            http_method=method.http_method,
            integration_http_method='POST',
            type='AWS_PROXY',
            uri=self.function.invoke_arn,
            opts=pulumi.ResourceOptions(parent=self),
        )
        return method, integration
