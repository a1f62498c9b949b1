"""
Mini-Pascal Python API

Provides the virtual machine and the Context used to compile and run programs.
"""

from .context import Context, Script
from .interpreter import VirtualMachine, VMStatus, MEMORY_SIZE, run

__all__ = [
    'Context',
    'Script',
    'VirtualMachine',
    'VMStatus',
    'MEMORY_SIZE',
    'run',
]
