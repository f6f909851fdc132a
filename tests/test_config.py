#!/usr/bin/env python3
"""Unit tests for configuration loading (config.py) and report templates (templates.py)."""

import json
import os
import sys
import tempfile
import unittest
from pathlib import Path

# Add parent directory to path to import cloudcache_admin
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cloudcache_admin.config import CliConfig, load_config
from cloudcache_admin.errors import InputError
from cloudcache_admin.templates import TemplateRegistry, command_kind


class TestLoadConfig(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self.config_file = os.path.join(self.tmpdir.name, 'config.json')

    def _write(self, content):
        with open(self.config_file, 'w') as f:
            f.write(content)

    def test_environment_only(self):
        config = load_config({'CFPCC': 'my-cache', 'CFLOGIN': 'u', 'CFPASSWORD': 'p',
                              'CFENDPOINT': 'https://c.example.com'}, self.config_file)
        self.assertEqual(config.default_target, 'my-cache')
        self.assertTrue(config.has_environment_credentials)

    def test_defaults(self):
        config = load_config({}, self.config_file)
        self.assertIsNone(config.default_target)
        self.assertFalse(config.has_environment_credentials)
        self.assertEqual(config.cf_command, 'cf')

    def test_file_values_and_environment_precedence(self):
        self._write(json.dumps({'default_target': 'file-cache', 'endpoint': 'https://file.example.com',
                                'ca_cert': '/etc/ca.pem', 'read_timeout': 60}))
        config = load_config({'CFPCC': 'env-cache'}, self.config_file)
        self.assertEqual(config.default_target, 'env-cache')
        self.assertEqual(config.endpoint, 'https://file.example.com')
        self.assertEqual(config.ca_cert, '/etc/ca.pem')
        self.assertEqual(config.read_timeout, 60.0)

    def test_invalid_file(self):
        for content in ('{broken', '[1, 2]'):
            with self.subTest(content=content):
                self._write(content)
                with self.assertRaises(InputError):
                    load_config({}, self.config_file)

    def test_invalid_timeout(self):
        self._write(json.dumps({'connect_timeout': 'fast'}))
        with self.assertRaises(InputError) as ctx:
            load_config({}, self.config_file)
        self.assertIn('connect_timeout', str(ctx.exception))

    def test_null_timeout(self):
        self._write(json.dumps({'read_timeout': None}))
        with self.assertRaises(InputError) as ctx:
            load_config({}, self.config_file)
        self.assertIn('read_timeout', str(ctx.exception))

    def test_proxy_variables(self):
        config = load_config({'https_proxy': 'http://proxy:8080', 'no_proxy': '.example.com',
                              'HTTP_PROXY': 'http://other:3128', 'PATH': '/usr/bin'}, self.config_file)
        self.assertEqual(config.proxy_env, {
            'HTTPS_PROXY': 'http://proxy:8080',
            'HTTP_PROXY': 'http://other:3128',
            'NO_PROXY': '.example.com',
        })

    def test_upper_case_proxy_variable_wins(self):
        config = load_config({'HTTPS_PROXY': 'http://upper:8080', 'https_proxy': 'http://lower:8080'},
                             self.config_file)
        self.assertEqual(config.proxy_env, {'HTTPS_PROXY': 'http://upper:8080'})

    def test_template_file_from_environment(self):
        self._write(json.dumps({'template_file': '/from/file.yaml'}))
        config = load_config({'CLOUDCACHE_ADMIN_TEMPLATE_FILE': '/from/env.yaml'}, self.config_file)
        self.assertEqual(config.template_file, '/from/env.yaml')
        config = load_config({}, self.config_file)
        self.assertEqual(config.template_file, '/from/file.yaml')

    def test_config_is_immutable(self):
        config = CliConfig()
        with self.assertRaises(Exception):
            config.default_target = 'x'


class TestTemplateRegistry(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)

    def test_command_kind(self):
        self.assertEqual(command_kind('list regions'), 'list-regions')
        self.assertEqual(command_kind('list-members'), 'list-members')

    def test_packaged_layouts(self):
        registry = TemplateRegistry(template_modifications_path=None)
        regions = registry.get('list regions')
        self.assertEqual(regions.columns, ['name', 'type', 'groups', 'entryCount', 'regionAttributes'])
        self.assertEqual(regions.summary_label, 'Number of Regions')
        members = registry.get('list-members')
        self.assertEqual(members.columns, ['id', 'host', 'status', 'pid'])
        self.assertEqual(members.summary_label, 'Number of Members')

    def test_unknown_kind(self):
        template = TemplateRegistry(template_modifications_path=None).get('describe config')
        self.assertEqual(template.columns, [])
        self.assertIsNone(template.summary_label)

    def test_user_overrides(self):
        path = os.path.join(self.tmpdir.name, 'report_templates.yaml')
        with open(path, 'w') as f:
            f.write("reports:\n"
                    "  list-members:\n"
                    "    columns: [id, status]\n"
                    "  list-indexes:\n"
                    "    columns: [name, regionPath]\n"
                    "  broken:\n"
                    "    columns: id\n")
        registry = TemplateRegistry(template_modifications_path=path)
        self.assertEqual(registry.get('list members').columns, ['id', 'status'])
        self.assertIsNone(registry.get('list members').summary_label)
        self.assertEqual(registry.get('list indexes').columns, ['name', 'regionPath'])
        self.assertEqual(registry.get('list regions').summary_label, 'Number of Regions')
        self.assertNotIn('broken', registry.get_command_names())

    def test_unreadable_override_is_ignored(self):
        path = os.path.join(self.tmpdir.name, 'report_templates.yaml')
        with open(path, 'w') as f:
            f.write("reports: [unclosed\n")
        registry = TemplateRegistry(template_modifications_path=path)
        self.assertEqual(registry.get_command_names(), ['list-members', 'list-regions'])


if __name__ == '__main__':
    unittest.main()
