# This file is part of cloudboot. See LICENSE file for license information.

# Set and read for determining the system config file location
CFG_ENV_NAME = "CLOUDBOOT_CFG"

# This is expected to be a yaml formatted file
CLOUDBOOT_CONFIG = "/etc/cloudboot/cloudboot.cfg"

# Kernel argument selecting the platform when the config does not
CMDLINE_PLATFORM_KEY = "cloudboot.platform"

# What u get if no config is provided
CFG_BUILTIN = {
    "platform": None,
    "platforms": {
        "alibabacloud": {
            "metadata_url": "http://100.100.100.200/latest/meta-data",
            "user_data_url": "http://100.100.100.200/latest/user-data",
            "timeout": 10,
        },
    },
    "network_wait": {
        "timeout": None,
        "interval": 1,
    },
    "log_cfgs": [],
    "log_basic": True,
}
