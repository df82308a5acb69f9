"""Rule-level fix instructions, one per antipattern kind."""

from __future__ import annotations

from dataclasses import dataclass

from apexscan.models import AntipatternKind

_FIX_INSTRUCTIONS = {
    AntipatternKind.GGD: (
        "Replace Schema.getGlobalDescribe() with a targeted describe.\n"
        "The global describe builds a token for every sObject in the org, so its cost grows with the "
        "org and is paid again on every loop iteration.\n"
        "- Known object at compile time: use the static token, e.g. Account.SObjectType or "
        "Schema.SObjectType.Account.\n"
        "- Object name known only at runtime: use "
        "((SObject) Type.forName('Schema', objectName).newInstance()).getSObjectType(), or "
        "Schema.describeSObjects(new List<String>{ objectName }).\n"
        "- If the global map is unavoidable, call it once outside any loop and cache the result in a "
        "static variable.\n"
        "Example:\n"
        "  // before\n"
        "  Schema.SObjectType t = Schema.getGlobalDescribe().get('Account');\n"
        "  // after\n"
        "  Schema.SObjectType t = Account.SObjectType;"
    ),
    AntipatternKind.SOQL_NO_WHERE_LIMIT: (
        "Bound every SOQL query with a WHERE filter, a LIMIT, or both.\n"
        "An unfiltered, unlimited query reads every row of the object and fails with "
        "'Too many query rows: 50001' once data volume grows.\n"
        "- Filter on selective, indexed fields (Id, Name, OwnerId, external ids, lookup fields, "
        "CreatedDate) so the query optimizer can use an index.\n"
        "- Add LIMIT when only a sample, the first match, or a bounded page is needed.\n"
        "- For genuinely large volumes, move the work to Batch Apex with Database.getQueryLocator.\n"
        "Example:\n"
        "  // before\n"
        "  List<Account> accs = [SELECT Id, Name FROM Account];\n"
        "  // after\n"
        "  List<Account> accs = [SELECT Id, Name FROM Account WHERE OwnerId = :userId LIMIT 200];"
    ),
    AntipatternKind.SOQL_UNUSED_FIELDS: (
        "Select only the fields the code reads.\n"
        "Every extra field adds heap, CPU time and view state, and widens the sharing and field-level "
        "security surface of the query.\n"
        "- Remove fields that are never referenced after the query; the proposed query shows the "
        "trimmed field list.\n"
        "- Keep fields that are read dynamically (record.get('Field')) or by called methods; the "
        "detector skips queries whose results leave the method, but verify before trimming.\n"
        "Example:\n"
        "  // before\n"
        "  for (Account a : [SELECT Id, Name, Phone, Fax FROM Account WHERE Id IN :ids]) { names.add(a.Name); }\n"
        "  // after\n"
        "  for (Account a : [SELECT Id, Name FROM Account WHERE Id IN :ids]) { names.add(a.Name); }"
    ),
}


@dataclass(frozen=True)
class Recommender:
    """Remediation provider bound to one antipattern kind."""

    kind: AntipatternKind
    instruction: str

    def fix_instruction(self) -> str:
        return self.instruction


def generic_fix_instruction(kind: AntipatternKind) -> str:
    """Fallback used when a rule has no registered recommender."""
    return (
        f"No remediation guidance is registered for {kind.name} ({kind.value}). "
        "Manual review required: inspect each reported location and apply the "
        "platform best practice for this antipattern."
    )


def get_recommender(kind: AntipatternKind) -> Recommender | None:
    text = _FIX_INSTRUCTIONS.get(kind)
    if not text:
        return None
    return Recommender(kind=kind, instruction=text)
