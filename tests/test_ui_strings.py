import unittest

from app.errors import classify_cep_failure
from app.ui_strings import (
    MESSAGES,
    NAV_ITEMS,
    ROLE_LABELS,
    STATUS_GROUPS,
    error_message,
    frontend_bundle,
    nav_items_for_role,
    status_label,
)


class UiStringsStatusGroupsTest(unittest.TestCase):
    def test_required_status_groups_exist(self) -> None:
        self.assertEqual(set(STATUS_GROUPS), {"solicitacao", "proposta", "cotacao"})

    def test_status_labels_and_descriptions_are_not_empty(self) -> None:
        for group_name, statuses in STATUS_GROUPS.items():
            for status in statuses:
                self.assertTrue((status.get("label") or "").strip(), f"label vazio em {group_name}:{status.get('key')}")
                self.assertTrue(
                    (status.get("description") or "").strip(),
                    f"descricao vazia em {group_name}:{status.get('key')}",
                )

    def test_status_label_falls_back_to_key(self) -> None:
        self.assertEqual(status_label("proposta", "WON"), "Vencedora")
        self.assertEqual(status_label("proposta", "UNKNOWN"), "UNKNOWN")
        self.assertEqual(status_label("proposta", None), "")

    def test_messages_are_ascii(self) -> None:
        for category, messages in MESSAGES.items():
            for key, text in messages.items():
                self.assertTrue(text.isascii(), f"mensagem nao ascii em {category}:{key}")

    def test_cep_failures_have_messages(self) -> None:
        for code in ("cep_invalid", "cep_not_found", "cep_unavailable"):
            _code, message_key, _status = classify_cep_failure(code)
            self.assertIn(message_key, MESSAGES["error"])
        self.assertEqual(error_message("missing_key", "fallback"), "fallback")


class UiStringsNavigationTest(unittest.TestCase):
    def test_nav_roles_are_known(self) -> None:
        for item in NAV_ITEMS:
            for role in item["roles"]:
                self.assertIn(role, ROLE_LABELS)

    def test_nav_items_follow_role(self) -> None:
        carrier_keys = {item["key"] for item in nav_items_for_role("TRANSPORTADOR")}
        client_keys = {item["key"] for item in nav_items_for_role("CLIENTE")}
        self.assertIn("tabelas", carrier_keys)
        self.assertNotIn("cotacoes", carrier_keys)
        self.assertIn("cotacoes", client_keys)
        self.assertNotIn("tabelas", client_keys)
        self.assertEqual(nav_items_for_role(None), [])

    def test_frontend_bundle_exposes_flow_policy(self) -> None:
        bundle = frontend_bundle()
        self.assertIn("status_groups", bundle)
        self.assertIn("messages", bundle)
        self.assertIn("cotacao", bundle["flow"]["policy"])


if __name__ == "__main__":
    unittest.main()
