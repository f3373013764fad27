"""Built-in resource types."""

from .facts import FactsReload as FactsReload
from .habitat_install import HabitatInstall as HabitatInstall
from .habitat_package import HabitatPackage as HabitatPackage
from .macos_hostname import MacosHostname as MacosHostname
