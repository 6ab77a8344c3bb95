"""School Payroll package.

Payroll deduction and subscription proration engine, organized by feature
modules (roster, schedules, evidence, waivers, deductions, subscriptions)
with a thin Flask controller layer over service/repository layers.
"""
