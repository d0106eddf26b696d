
SELECT_USER_FIRST = "Select a user first"

class StacksAPIError(Exception):
    code = "error"
    retry = False

class InventoryOverrunError(Exception): pass

class UnknownUserError(StacksAPIError):
    code = "unknown_user"

class UnknownBookError(StacksAPIError):
    code = "unknown_book"

class OutOfStockError(StacksAPIError):
    code = "out_of_stock"

class LoanNotFoundError(StacksAPIError):
    code = "loan_not_found"

class AlreadyReturnedError(StacksAPIError):
    code = "already_returned"

class ConstraintViolationError(StacksAPIError):
    code = "constraint_violation"

class BusyError(StacksAPIError):
    code = "busy"
    retry = True
