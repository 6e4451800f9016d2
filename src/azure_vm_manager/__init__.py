# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Library for deploying and managing Azure virtual machines and virtual machine clusters."""
