import os
import stat
import sys
import tempfile
import unittest

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from trojangolink.errors import PluginResolutionError
from trojangolink.plugin import (
    PathPluginResolver,
    PluginConfiguration,
    PluginOptions,
    StaticPluginResolver,
    plugin_from_transport,
)


class TestPluginOptions(unittest.TestCase):
    def test_parse_id_and_options(self):
        opts = PluginOptions.parse("v2ray-plugin;mode=websocket;host=cdn.example.com")
        self.assertEqual(opts.id, "v2ray-plugin")
        self.assertEqual(opts.options, {"mode": "websocket", "host": "cdn.example.com"})

    def test_bare_tokens_after_id_are_flags(self):
        opts = PluginOptions.parse("obfs-local;obfs=http;fast-open")
        self.assertEqual(opts.options, {"obfs": "http", "fast-open": None})
        self.assertEqual(opts.to_string(), "obfs=http;fast-open")

    def test_escaping(self):
        opts = PluginOptions(id="p", options={"path": "/a;b=c", "k\\": "v"})
        text = opts.to_string(trim_id=False)
        self.assertEqual(text, "p;path=/a\\;b\\=c;k\\\\=v")
        self.assertEqual(PluginOptions.parse(text), opts)

    def test_second_equals_belongs_to_value(self):
        opts = PluginOptions.parse("p;k=a=b")
        self.assertEqual(opts.options, {"k": "a=b"})

    def test_without_id_parsing(self):
        opts = PluginOptions.parse("mode=quic;tls", parse_id=False)
        self.assertEqual(opts.id, "")
        self.assertEqual(opts.options, {"mode": "quic", "tls": None})

    def test_untrimmed_string_needs_an_id(self):
        self.assertEqual(PluginOptions(options={"a": "b"}).to_string(trim_id=False), "")

    def test_from_args_pairs_odd_keys_with_following_value(self):
        opts = PluginOptions.from_args(["a", "b", "c", "d"])
        self.assertEqual(opts.options, {"": "a", "b": "c"})

    def test_to_args(self):
        opts = PluginOptions(options={"mode": "websocket", "tls": None})
        self.assertEqual(opts.to_args(), ["mode", "websocket", "tls", ""])


class TestPluginConfiguration(unittest.TestCase):
    def test_first_line_is_selected(self):
        conf = PluginConfiguration.parse("a;x=1\nb;y=2")
        self.assertEqual(conf.selected, "a")
        self.assertEqual(set(conf.plugins_options), {"a", "b"})
        self.assertEqual(str(conf), "a;x=1\nb;y=2")

    def test_selected_plugin_is_listed_first(self):
        conf = PluginConfiguration.parse("a;x=1\nb;y=2")
        conf.selected = "b"
        self.assertEqual(str(conf), "b;y=2\na;x=1")

    def test_selected_without_options(self):
        self.assertEqual(str(PluginConfiguration(selected="kcptun")), "kcptun")

    def test_empty(self):
        conf = PluginConfiguration.parse("")
        self.assertEqual(conf.selected, "")
        self.assertEqual(conf.get_options(), PluginOptions())
        self.assertEqual(str(conf), "")

    def test_fix_invalid_params(self):
        conf = PluginConfiguration(selected="/opt/lib/libv2ray.so")
        conf.plugins_options["/opt/lib/libv2ray.so"] = PluginOptions(
            id="/opt/lib/libv2ray.so", options={"mode": "websocket"})
        conf.fix_invalid_params()
        self.assertEqual(conf.selected, "v2ray-plugin")
        self.assertEqual(str(conf), "v2ray-plugin;mode=websocket")

        conf = PluginConfiguration.parse("simple-obfs;obfs=tls")
        conf.fix_invalid_params()
        self.assertEqual(str(conf), "obfs-local;obfs=tls")


class TestTransportPlugin(unittest.TestCase):
    def test_option_string_overrides_arg_list(self):
        token = plugin_from_transport({
            "enabled": True,
            "type": "shadowsocks",
            "command": "/usr/bin/v2ray-plugin",
            "arg": ["x", "mode", "websocket"],
            "option": "mode=quic",
        })
        self.assertEqual(token, "v2ray-plugin;mode=quic")

    def test_arg_list_only(self):
        token = plugin_from_transport({
            "enabled": True,
            "type": "shadowsocks",
            "command": "kcptun",
            "arg": ["x", "mode", "fast"],
        })
        self.assertEqual(token, "kcptun;=x;mode=fast")

    def test_disabled_or_other_type(self):
        self.assertEqual(plugin_from_transport({"enabled": False, "type": "shadowsocks", "command": "a"}), "")
        self.assertEqual(plugin_from_transport({"enabled": True, "type": "plaintext", "command": "a"}), "")
        self.assertEqual(plugin_from_transport({"enabled": True, "type": "shadowsocks"}), "")


class TestResolvers(unittest.TestCase):
    def test_static_resolver(self):
        resolver = StaticPluginResolver({"v2ray-plugin": "/usr/bin/v2ray-plugin"})
        resolved = resolver.resolve(PluginConfiguration.parse("v2ray-plugin;mode=websocket"))
        self.assertEqual(resolved.path, "/usr/bin/v2ray-plugin")
        self.assertEqual(resolved.options.to_string(), "mode=websocket")
        self.assertIsNone(resolver.resolve(PluginConfiguration.parse("obfs-local")))
        self.assertIsNone(resolver.resolve(PluginConfiguration.parse("")))

    @unittest.skipIf(sys.platform == "win32", "relies on the executable bit")
    def test_path_resolver(self):
        with tempfile.TemporaryDirectory() as tmp:
            binary = os.path.join(tmp, "obfs-local")
            with open(binary, "w") as f:
                f.write("#!/bin/sh\n")
            os.chmod(binary, os.stat(binary).st_mode | stat.S_IXUSR)

            resolver = PathPluginResolver(tmp)
            resolved = resolver.resolve(PluginConfiguration.parse("obfs-local;obfs=http"))
            self.assertEqual(resolved.path, binary)
            self.assertEqual(resolved.options.options, {"obfs": "http"})
            self.assertIsNone(resolver.resolve(PluginConfiguration.parse("v2ray-plugin")))

    def test_path_resolver_rejects_paths(self):
        conf = PluginConfiguration(selected=os.path.join("..", "evil"))
        with self.assertRaises(PluginResolutionError):
            PathPluginResolver().resolve(conf)


if __name__ == "__main__":
    unittest.main()
