from unittest import TestCase

from openapi_model_gen.pipeline.config import CodeGeneratorConfig, OutputConfig, OutputMode


class TestCodeGeneratorConfig(TestCase):
    """Test configuration loading and export"""

    def test_defaults(self):
        config = CodeGeneratorConfig()
        self.assertEqual(config.ignore_classes, [])
        self.assertTrue(config.add_generation_comment)
        self.assertEqual(config.required_with_default, "error")
        self.assertEqual(config.output.mode, OutputMode.ERROR_IF_EXISTS)

    def test_from_dict(self):
        config = CodeGeneratorConfig.from_dict(
            {
                "ignore_classes": ["Tag"],
                "global_ignore_fields": ["id"],
                "order_classes": ["Pet"],
                "use_future_annotations": False,
                "required_with_default": "optional",
                "output": {"mode": "regenerate", "atomic_write": False},
            }
        )
        self.assertEqual(config.ignore_classes, ["Tag"])
        self.assertEqual(config.global_ignore_fields, ["id"])
        self.assertEqual(config.order_classes, ["Pet"])
        self.assertFalse(config.use_future_annotations)
        self.assertEqual(config.required_with_default, "optional")
        self.assertEqual(config.output, OutputConfig(mode=OutputMode.REGENERATE, validate_before_write=True, atomic_write=False))

    def test_unknown_keys_are_ignored(self):
        config = CodeGeneratorConfig.from_dict({"no_such_option": 1})
        self.assertFalse(hasattr(config, "no_such_option"))

    def test_invalid_policy(self):
        with self.assertRaises(ValueError):
            CodeGeneratorConfig.from_dict({"required_with_default": "maybe"})

    def test_invalid_output_mode(self):
        with self.assertRaises(ValueError):
            CodeGeneratorConfig.from_dict({"output": {"mode": "sometimes"}})

    def test_to_dict_round_trip(self):
        config = CodeGeneratorConfig.from_dict({"ignore_classes": ["A"], "output": {"mode": "force"}})
        exported = config.to_dict()
        self.assertEqual(exported["output"]["mode"], "force")
        self.assertEqual(CodeGeneratorConfig.from_dict(exported), config)
