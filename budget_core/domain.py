from dataclasses import dataclass

INCOME = "income"
EXPENSE = "expense"
INVESTMENT = "investment"
ALLOCATION = "allocation"
ENTRY_TYPES = (INCOME, EXPENSE, INVESTMENT, ALLOCATION)

AMOUNT = "amount"
PERCENT = "percent"
VALUE_MODES = (AMOUNT, PERCENT)

DAILY = "daily"
WEEKLY = "weekly"
MONTHLY = "monthly"
YEARLY = "yearly"
FREQUENCIES = (DAILY, WEEKLY, MONTHLY, YEARLY)

RETIREMENT = "retirement"
SAVINGS = "savings"
LIQUID = "liquid"
ACCOUNT_TYPES = (RETIREMENT, INVESTMENT, SAVINGS, LIQUID)


# One budget line
@dataclass(frozen=True)
class Entry:
    id: str
    type: str                  # income / expense / investment / allocation
    name: str                  # lookup key for percent references
    value_mode: str            # "amount" or "percent"
    value: float               # amount per frequency, or 0-100 percent
    reference: str = ""        # name of the referenced entry (percent mode)
    frequency: str = MONTHLY   # ignored in percent mode
    category: str = ""
    is_wealth_building: bool = False  # allocation only
    source_income: str = ""           # allocation only, informational
    target_account: str = ""          # allocation only, account id


@dataclass(frozen=True)
class Account:
    id: str
    name: str
    type: str = SAVINGS
    balance: float = 0.0
    expected_return: float = 0.0  # annual, e.g. 0.07
    is_active: bool = True
