from constructs import Construct
from aws_cdk import (
    aws_dynamodb as dynamodb,
    CfnOutput,
    RemovalPolicy
)

from helper.config import Config
from stacks.common.base import BaseStack
from stacks.common.exceptions import StackConfigurationError


class SharedTableStack(BaseStack):
    """
    Owner of the persistent table shared by the backend deployments.

    The table is retained on stack deletion and is never created or deleted
    by the backend stacks; they only receive grants on it. With
    ``SharedTable.Import`` set, an existing table is referenced by name
    instead of created.
    """

    def __init__(self,
                 scope: Construct,
                 construct_id: str,
                 config: Config,
                 **kwargs) -> None:
        super().__init__(scope, construct_id, config, **kwargs)

        table_config = config.get_shared_table_config()
        table_name = table_config.get('Name')
        if not table_name:
            raise StackConfigurationError(
                "SharedTable.Name is required",
                config_key="SharedTable.Name"
            )

        if table_config.get('Import', False):
            self.table = dynamodb.TableV2.from_table_name(self, "SharedTable", table_name)
        else:
            sort_key = table_config.get('SortKey')
            self.table = dynamodb.TableV2(
                self,
                "SharedTable",
                table_name=table_name,
                partition_key=dynamodb.Attribute(
                    name=table_config.get('PartitionKey', 'pk'),
                    type=dynamodb.AttributeType.STRING
                ),
                sort_key=dynamodb.Attribute(
                    name=sort_key,
                    type=dynamodb.AttributeType.STRING
                ) if sort_key else None,
                billing=dynamodb.Billing.on_demand(),
                removal_policy=RemovalPolicy.RETAIN
            )
            self.add_common_tags(self.table)

        CfnOutput(
            self, "SharedTableNameExport",
            value=self.table.table_name,
            description="Name of the shared persistent table"
        )
