"""HSM Bootstrap.

Provision an AWS CloudHSM cluster and drive it through initialization by polling the control plane.
"""

__version__ = "0.1.0"
__author__ = "Platform Engineering Team"
__license__ = "Apache-2.0"
