import unittest
from unittest import mock

from google.genai import errors, types

from nutriplan.core.errors import AICreditsExhausted, AIGatewayError, AIRateLimited
from nutriplan.services.ai_gateway import LLMGateway, parse_json_response, strip_markdown_fences
from nutriplan.services.suggestion_service import NUTRITION_INFO_DECLARATION, lookup_nutrition

from support import FakeGenaiClient


def api_error(cls, code, status):
    return cls(code, {"error": {"code": code, "message": f"{status} from upstream", "status": status}})


class TestJsonParsing(unittest.TestCase):
    def test_strips_json_fence(self):
        self.assertEqual(strip_markdown_fences('```json\n{"a": 1}\n```'), '{"a": 1}')

    def test_strips_bare_fence(self):
        self.assertEqual(strip_markdown_fences('```\n[1, 2]\n```'), "[1, 2]")

    def test_plain_text_untouched(self):
        self.assertEqual(strip_markdown_fences('  {"a": 1} '), '{"a": 1}')

    def test_parse_fenced_json(self):
        self.assertEqual(parse_json_response('```json\n{"meals": []}\n```'), {"meals": []})

    def test_invalid_json_raises_gateway_error(self):
        with self.assertRaises(AIGatewayError):
            parse_json_response("Sure! Here is your plan:")
        with self.assertRaises(AIGatewayError):
            parse_json_response("")


class TestLLMGateway(unittest.TestCase):
    def setUp(self):
        self.genai = FakeGenaiClient()
        self.gateway = LLMGateway(client=self.genai, model="test-model", temperature=0.2)

    def test_generate_text_passes_system_instruction(self):
        self.genai.reply_text("hello")

        self.assertEqual(self.gateway.generate_text("hi", system_instruction="be brief"), "hello")

        call = self.genai.calls[0]
        self.assertEqual(call["model"], "test-model")
        self.assertEqual(call["contents"], "hi")
        self.assertEqual(call["config"].system_instruction, "be brief")
        self.assertEqual(call["config"].temperature, 0.2)

    def test_generate_json(self):
        self.genai.reply_text('```json\n{"suggestions": [{"name": "Omelette"}]}\n```')
        self.assertEqual(self.gateway.generate_json("ideas"), {"suggestions": [{"name": "Omelette"}]})

    def test_rate_limit(self):
        self.genai.reply_error(api_error(errors.ClientError, 429, "RESOURCE_EXHAUSTED"))
        with self.assertRaises(AIRateLimited) as ctx:
            self.gateway.generate_text("hi")
        self.assertEqual(ctx.exception.status_code, 429)

    def test_credits_exhausted(self):
        self.genai.reply_error(api_error(errors.ClientError, 402, "PAYMENT_REQUIRED"))
        with self.assertRaises(AICreditsExhausted) as ctx:
            self.gateway.generate_text("hi")
        self.assertEqual(ctx.exception.status_code, 402)

    def test_other_errors(self):
        self.genai.reply_error(api_error(errors.ServerError, 500, "INTERNAL"))
        with self.assertRaises(AIGatewayError) as ctx:
            self.gateway.generate_text("hi")
        self.assertNotIsInstance(ctx.exception, AIRateLimited)
        self.assertEqual(ctx.exception.status_code, 502)

    def test_no_retry(self):
        self.genai.reply_error(api_error(errors.ClientError, 429, "RESOURCE_EXHAUSTED"))
        self.genai.reply_text("should not be used")
        with self.assertRaises(AIRateLimited):
            self.gateway.generate_text("hi")
        self.assertEqual(len(self.genai.calls), 1)

    def test_structured_call_forces_function(self):
        self.genai.reply_call("provide_nutrition_info", {"calories": 155.4, "protein": 12.63, "carbs": 1.1, "fats": 10.56})

        info = lookup_nutrition(self.gateway, "Eggs", "2 units")

        self.assertEqual(info, {"calories": 155, "protein": 12.6, "carbs": 1.1, "fats": 10.6})
        config = self.genai.calls[0]["config"]
        self.assertEqual(config.tool_config.function_calling_config.mode, types.FunctionCallingConfigMode.ANY)
        self.assertEqual(config.tool_config.function_calling_config.allowed_function_names,
                         [NUTRITION_INFO_DECLARATION.name])

    def test_structured_without_call_raises(self):
        self.genai.reply_text("I think eggs have about 150 kcal")
        with self.assertRaises(AIGatewayError):
            lookup_nutrition(self.gateway, "Eggs", "2 units")

    def test_missing_api_key_fails_only_on_use(self):
        gateway = LLMGateway(model="test-model")
        gateway._client = None
        with mock.patch("nutriplan.services.ai_gateway.get_settings") as settings:
            settings.return_value.gemini_api_key = None
            with self.assertRaises(AIGatewayError):
                gateway.generate_text("hi")


if __name__ == "__main__":
    unittest.main()
