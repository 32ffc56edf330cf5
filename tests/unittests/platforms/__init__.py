# This file is part of cloudboot. See LICENSE file for license information.
