"""购物车 API 路由"""

from fastapi import APIRouter, Body, HTTPException, Path
from sqlalchemy.orm import Session
import logging

from app.core.dependencies import DatabaseDep, CurrentUserDep
from app.core.security import CurrentUser
from app.services.cart_service import CartService
from app.schemas.cart import (
    AddCartItemRequest,
    CartOut,
    CartResponse,
    ClearCartResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/cart",
    tags=["购物车"],
    responses={
        401: {"description": "未登录"},
        404: {"description": "资源未找到"},
        500: {"description": "服务器内部错误"}
    }
)


@router.get("", response_model=CartResponse, summary="获取购物车")
async def get_cart(
    user: CurrentUser = CurrentUserDep,
    db: Session = DatabaseDep,
):
    """获取当前用户购物车，不存在时自动创建"""
    try:
        cart = CartService(db).get_or_create_cart(user.id)
        return {"success": True, "data": CartOut.model_validate(cart)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"获取购物车失败: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("", response_model=CartResponse, summary="加入购物车")
async def add_item_to_cart(
    request: AddCartItemRequest = Body(...),
    user: CurrentUser = CurrentUserDep,
    db: Session = DatabaseDep,
):
    try:
        cart = CartService(db).add_item(
            user.id,
            request.product_id,
            request.quantity,
            request.variant.model_dump() if request.variant else None,
        )
        return {"success": True, "data": CartOut.model_validate(cart)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"加入购物车失败: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{item_id}", response_model=CartResponse, summary="移除购物车条目")
async def remove_item_from_cart(
    item_id: str = Path(..., description="购物车条目ID"),
    user: CurrentUser = CurrentUserDep,
    db: Session = DatabaseDep,
):
    try:
        cart = CartService(db).remove_item(user.id, item_id)
        return {"success": True, "data": CartOut.model_validate(cart)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"移除购物车条目失败: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("", response_model=ClearCartResponse, summary="清空购物车")
async def clear_cart(
    user: CurrentUser = CurrentUserDep,
    db: Session = DatabaseDep,
):
    try:
        CartService(db).clear(user.id)
        return {"success": True, "data": {}}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"清空购物车失败: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
