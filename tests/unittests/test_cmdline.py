# This file is part of cloudboot. See LICENSE file for license information.

import pytest

from cloudboot import cmdline
from cloudboot.cmdline import KernelParameter


class TestKernelParameter:
    def test_append_is_chainable(self):
        param = KernelParameter("console").append("tty1").append("ttyS0")
        assert ("tty1", "ttyS0") == param.values
        assert "tty1" == param.first()

    def test_str_repeats_key_per_value(self):
        param = KernelParameter("console", ["tty1", "ttyS0"])
        assert "console=tty1 console=ttyS0" == str(param)

    def test_str_without_values_is_bare_key(self):
        assert "quiet" == str(KernelParameter("quiet"))
        assert KernelParameter("quiet").first() is None

    def test_equality(self):
        assert KernelParameter("a", ["1"]) == KernelParameter("a").append("1")
        assert KernelParameter("a", ["1"]) != KernelParameter("a", ["2"])
        assert KernelParameter("a") != "a"


class TestCmdline:
    def test_render(self):
        params = [
            KernelParameter("console", ["tty1", "ttyS0"]),
            KernelParameter("net.ifnames", ["0"]),
        ]
        assert "console=tty1 console=ttyS0 net.ifnames=0" == cmdline.render(
            params
        )

    def test_parse_collects_repeated_keys(self):
        params = cmdline.parse(
            "BOOT_IMAGE=/vmlinuz ro console=tty1 console=ttyS0,115200n8"
        )
        assert ["BOOT_IMAGE", "ro", "console"] == list(params)
        assert ("tty1", "ttyS0,115200n8") == params["console"].values
        assert () == params["ro"].values

    def test_parse_quoted_values(self):
        params = cmdline.parse('ds="nocloud;s=http://x/" quiet')
        assert "nocloud;s=http://x/" == params["ds"].first()

    def test_parse_unbalanced_quotes(self):
        params = cmdline.parse('a="b c=d')
        assert '"b' == params["a"].first()
        assert "d" == params["c"].first()

    @pytest.mark.parametrize(
        "line,expected",
        [
            ("cloudboot.platform=alibabacloud ro", "alibabacloud"),
            ("ro cloudboot.platform=a cloudboot.platform=b", "a"),
            ("ro quiet", None),
            ("cloudboot.platform", None),
            ("", None),
        ],
    )
    def test_get_value(self, line, expected):
        assert expected == cmdline.get_value(line, "cloudboot.platform")
