"""Ownership and existence checks shared by the quotation and price-list routes"""
from fastapi import HTTPException


def check_ownership(quotation, current_user, action: str = "access") -> None:
    """Only the employee who issued a quotation may read or change it."""
    if quotation.employee_id != int(current_user.id):
        raise HTTPException(
            status_code=403,
            detail=f"Forbidden: you can only {action} your own quotations"
        )


def check_not_found(item, resource_name: str, resource_id: int) -> None:
    if item is None:
        raise HTTPException(status_code=404, detail=f"{resource_name} {resource_id} not found")
