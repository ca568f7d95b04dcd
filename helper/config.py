import os
import re
import yaml
from yaml.loader import SafeLoader
from typing import Dict, Any, Optional


class ProjectNameValidationError(Exception):
    """Raised when ProjectName validation fails."""
    pass


class Config:

    _environment = 'production'
    data = {}

    def __init__(self, environment, config_dir: str = 'config') -> None:
        self._environment = environment
        self._config_dir = config_dir
        self.load()
        self._validate_project_name()

    @property
    def environment(self) -> str:
        return self._environment

    def load(self) -> dict:
        path = os.path.join(self._config_dir, f'{self._environment}.yaml')
        with open(path, encoding='utf-8') as f:
            self.data = yaml.load(f, Loader=SafeLoader) or {}
        return self.data

    def get(self, key):
        return self.data[key]

    def _validate_project_name(self) -> None:
        """
        Validate ProjectName against the naming constraints of the resources it prefixes.

        The longest derived name is the load balancer name "<project>-alb",
        limited to 32 characters by Elastic Load Balancing.

        Raises:
            ProjectNameValidationError: If ProjectName doesn't meet requirements
        """
        project_name = self.data.get('ProjectName')

        if not project_name:
            raise ProjectNameValidationError("ProjectName is required in configuration")

        if not isinstance(project_name, str):
            raise ProjectNameValidationError("ProjectName must be a string")

        project_name = project_name.strip()

        MAX_LENGTH = 20
        MIN_LENGTH = 3

        if len(project_name) > MAX_LENGTH:
            raise ProjectNameValidationError(
                f"ProjectName must be {MAX_LENGTH} characters or less. "
                f"Current length: {len(project_name)}"
            )

        if len(project_name) < MIN_LENGTH:
            raise ProjectNameValidationError(
                f"ProjectName must be at least {MIN_LENGTH} characters long. "
                f"Current length: {len(project_name)}"
            )

        # CloudFormation stacks must start with a letter, ECR/ECS names prefer lowercase
        if not re.match(r'^[a-z]([a-z0-9-]*[a-z0-9])?$', project_name):
            raise ProjectNameValidationError(
                f"ProjectName '{project_name}' contains invalid characters. "
                f"Must use only lowercase letters (a-z), numbers (0-9), and hyphens (-). "
                f"Must start with a letter and end with a letter or number"
            )

        if '--' in project_name:
            raise ProjectNameValidationError(
                f"ProjectName '{project_name}' contains consecutive hyphens"
            )

    def get_validated_project_name(self) -> str:
        """
        Get the validated project name.

        Returns:
            Validated project name

        Raises:
            ProjectNameValidationError: If validation fails
        """
        self._validate_project_name()
        return self.data['ProjectName'].strip()

    def get_deployment_config(self) -> Dict[str, Any]:
        """Get the Deployment section describing the backend service."""
        deployment = self.data.get('Deployment')
        if not isinstance(deployment, dict):
            raise KeyError('Deployment')
        return deployment

    def get_shared_table_config(self) -> Dict[str, Any]:
        """Get the SharedTable section."""
        return self.data.get('SharedTable') or {}

    def get_account(self) -> Optional[str]:
        """Account from config, falling back to the CDK default account."""
        account = self.data.get('AccountId')
        if account:
            return str(account)
        return os.environ.get('CDK_DEFAULT_ACCOUNT')

    def is_nag_checks_enabled(self) -> bool:
        return bool(self.data.get('EnableNagChecks', False))
