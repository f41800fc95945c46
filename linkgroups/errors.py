class GroupError(Exception):
    status_code = 400
    field: str | None = None

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        if field is not None:
            self.field = field

    def as_dict(self):
        payload = {"error": self.message}
        if self.field:
            payload["field"] = self.field
        return payload


class ValidationError(GroupError):
    status_code = 422
    field = "title"


class ParentReferenceError(GroupError):
    status_code = 422
    field = "parent_group_id"


class NotFoundError(GroupError):
    status_code = 404


class SelfReferenceError(GroupError):
    status_code = 422
    field = "parent_group_id"


class CycleDetectedError(GroupError):
    status_code = 500
