# fleetmaint/agentic/tools/auto_discover.py
import pkgutil
import importlib
import fleetmaint.agentic.tools
#自动import fleetmaint.agentic.tools 包下的所有模块，触发工具注册逻辑
'''
启动时：

from fleetmaint.agentic.tools.registry import tool_registry
from fleetmaint.agentic.tools.auto_discover import discover_tools
discover_tools()# 导入 tools 包下的所有模块，把工具注册到全局的 tool_registry 中。

tool_registry.get("reconcile_service_order_parts")
'''
def discover_tools():
    for _, module_name, _ in pkgutil.walk_packages(
        fleetmaint.agentic.tools.__path__,
        fleetmaint.agentic.tools.__name__ + "."
    ):
        importlib.import_module(module_name)
