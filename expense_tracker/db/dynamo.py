import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from expense_tracker.models.category import Category
from expense_tracker.models.expense import Expense, utc_now_iso
from expense_tracker.models.file import FileRecord

logger = logging.getLogger(__name__)


class ExpenseStore:
    """Expenses table, keyed by expenseId, with a (userId, date) index for range queries."""

    def __init__(self, table, date_index: str = "UserIdDateIndex") -> None:
        self._table = table
        self._date_index = date_index

    def put(self, expense: Expense) -> Expense:
        self._table.put_item(Item=_convert_for_dynamo(expense.to_item()))
        return expense

    def get(self, expense_id: str) -> Optional[Expense]:
        response = self._table.get_item(Key={"expenseId": expense_id})
        item = response.get("Item")
        return Expense.model_validate(_from_dynamo(item)) if item else None

    def update(self, expense_id: str, changes: Dict[str, Any]) -> Optional[Expense]:
        """
        Apply a partial update and return the new record, or None if the
        expense no longer exists. updatedAt is always refreshed.
        """
        fields = dict(changes)
        fields["updatedAt"] = utc_now_iso()
        attributes = _update_item(self._table, {"expenseId": expense_id}, fields)
        return Expense.model_validate(attributes) if attributes else None

    def delete(self, expense_id: str) -> bool:
        response = self._table.delete_item(Key={"expenseId": expense_id}, ReturnValues="ALL_OLD")
        return "Attributes" in response

    def query_by_user(
        self,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[Expense]:
        """
        All expenses for a user. When both bounds are given the date range is
        applied on the index, inclusive at both ends.
        """
        condition = Key("userId").eq(user_id)
        if start_date and end_date:
            condition = condition & Key("date").between(start_date.isoformat(), end_date.isoformat())

        items = _query_all(self._table, IndexName=self._date_index, KeyConditionExpression=condition)
        return [Expense.model_validate(item) for item in items]


class CategoryStore:
    def __init__(self, table, user_index: str = "UserIdIndex") -> None:
        self._table = table
        self._user_index = user_index

    def put(self, category: Category) -> Category:
        self._table.put_item(Item=_convert_for_dynamo(category.to_item()))
        return category

    def list_for_user(self, user_id: str) -> List[Category]:
        items = _query_all(
            self._table,
            IndexName=self._user_index,
            KeyConditionExpression=Key("userId").eq(user_id),
        )
        return [Category.model_validate(item) for item in items]


class FileStore:
    def __init__(self, table, user_index: str = "UserIdIndex") -> None:
        self._table = table
        self._user_index = user_index

    def put(self, record: FileRecord) -> FileRecord:
        self._table.put_item(Item=_convert_for_dynamo(record.to_item()))
        return record

    def get(self, file_id: str) -> Optional[FileRecord]:
        response = self._table.get_item(Key={"fileId": file_id})
        item = response.get("Item")
        return FileRecord.model_validate(_from_dynamo(item)) if item else None

    def list_for_user(self, user_id: str) -> List[FileRecord]:
        items = _query_all(
            self._table,
            IndexName=self._user_index,
            KeyConditionExpression=Key("userId").eq(user_id),
        )
        return [FileRecord.model_validate(item) for item in items]

    def update(self, file_id: str, changes: Dict[str, Any]) -> Optional[FileRecord]:
        fields = dict(changes)
        fields["updatedAt"] = utc_now_iso()
        attributes = _update_item(self._table, {"fileId": file_id}, fields)
        return FileRecord.model_validate(attributes) if attributes else None

    def delete(self, file_id: str) -> bool:
        response = self._table.delete_item(Key={"fileId": file_id}, ReturnValues="ALL_OLD")
        return "Attributes" in response


def build_update_expression(fields: Dict[str, Any]) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
    """
    Turn a field -> value mapping into a DynamoDB SET expression. Every name
    goes through a placeholder since `date` is a reserved word.
    """
    update_expression_parts = []
    expression_attribute_values = {}
    expression_attribute_names = {}

    for idx, (key, value) in enumerate(fields.items()):
        placeholder = f"#f{idx}"
        value_placeholder = f":v{idx}"
        update_expression_parts.append(f"{placeholder} = {value_placeholder}")
        expression_attribute_names[placeholder] = key
        expression_attribute_values[value_placeholder] = value

    update_expression = "SET " + ", ".join(update_expression_parts)
    return update_expression, expression_attribute_names, _convert_for_dynamo(expression_attribute_values)


def _update_item(table, key: Dict[str, str], fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    update_expression, names, values = build_update_expression(fields)
    key_name = next(iter(key))
    names["#pk"] = key_name

    try:
        response = table.update_item(
            Key=key,
            UpdateExpression=update_expression,
            ConditionExpression="attribute_exists(#pk)",
            ExpressionAttributeNames=names,
            ExpressionAttributeValues=values,
            ReturnValues="ALL_NEW",
        )
    except ClientError as e:
        if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
            logger.info(f"Update skipped, {key_name}={key[key_name]} does not exist")
            return None
        raise

    attributes = response.get("Attributes")
    return _from_dynamo(attributes) if attributes else None


def _query_all(table, **kwargs) -> List[Dict[str, Any]]:
    """Run a query and follow LastEvaluatedKey until every page is read."""
    items: List[Dict[str, Any]] = []
    while True:
        response = table.query(**kwargs)
        items.extend(_from_dynamo(response.get("Items", [])))
        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            return items
        kwargs["ExclusiveStartKey"] = last_key


def _convert_for_dynamo(obj: Any):
    """
    Recursively convert floats to Decimal for DynamoDB compatibility.
    """
    if isinstance(obj, float):
        return Decimal(str(obj))
    if isinstance(obj, dict):
        return {k: _convert_for_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_convert_for_dynamo(v) for v in obj]
    return obj


def _from_dynamo(obj: Any):
    """
    Recursively convert Decimal instances back to native Python numeric types.
    """
    if isinstance(obj, list):
        return [_from_dynamo(item) for item in obj]
    if isinstance(obj, dict):
        return {k: _from_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, Decimal):
        if obj % 1 == 0:
            return int(obj)
        return float(obj)
    return obj
