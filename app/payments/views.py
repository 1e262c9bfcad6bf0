"""
DRF views for payments app.

This module provides API views for:
- Escrow milestone payments (initiate, verify, release, history, stats)
- Wallet balance and ledger history
- Gateway deposits and admin-approved withdrawals

Related files:
    - services/escrow_service.py: EscrowService
    - ledger/services.py: WalletLedgerService
    - serializers.py: Request/response serializers
    - urls.py: URL routing

Endpoints:
    POST /api/v1/payments/escrow/                         - Pay a milestone into escrow
    POST /api/v1/payments/escrow/verify/                  - Gateway callback for escrow
    POST /api/v1/payments/escrow/{id}/release/            - Release a held payment
    GET  /api/v1/payments/escrow/history/                 - Escrow history
    GET  /api/v1/payments/escrow/stats/                   - Escrow totals
    GET  /api/v1/payments/wallet/                         - Wallet balance
    GET  /api/v1/payments/wallet/transactions/            - Wallet ledger rows
    POST /api/v1/payments/wallet/deposit/                 - Start a deposit
    POST /api/v1/payments/wallet/deposit/verify/          - Gateway callback for deposit
    POST /api/v1/payments/wallet/withdraw/                - Request a withdrawal
    GET  /api/v1/payments/wallet/withdrawals/             - Pending withdrawal queue (admin)
    POST /api/v1/payments/wallet/withdrawals/{id}/approve/ - Approve (admin)
    POST /api/v1/payments/wallet/withdrawals/{id}/reject/  - Reject (admin)

Security:
    - All endpoints require authentication
    - The withdrawal queue and withdrawal decisions additionally require
      the admin role
"""

from __future__ import annotations

import logging

from django.db.models import Sum
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.views import failure_response
from payments.ledger.models import WalletTransaction
from payments.ledger.services import WalletLedgerService
from payments.permissions import IsPlatformAdmin
from payments.serializers import (
    DepositRequestSerializer,
    DepositResponseSerializer,
    DepositVerifySerializer,
    EscrowPaymentRequestSerializer,
    EscrowPaymentResponseSerializer,
    EscrowStatsSerializer,
    EscrowTransactionSerializer,
    EscrowVerifySerializer,
    PendingWithdrawalSerializer,
    WalletSerializer,
    WalletTransactionSerializer,
    WithdrawalDecisionSerializer,
    WithdrawalRequestSerializer,
)
from payments.services import EscrowService
from payments.state_machines import WalletTransactionStatus, WalletTransactionType

logger = logging.getLogger(__name__)


# =============================================================================
# Escrow
# =============================================================================


class EscrowPaymentView(APIView):
    """
    Pay a milestone into escrow.

    POST /api/v1/payments/escrow/

    Returns the gateway URL the employer must be redirected to.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="create_escrow_payment",
        summary="Pay a milestone into escrow",
        request=EscrowPaymentRequestSerializer,
        responses={
            201: EscrowPaymentResponseSerializer,
            403: OpenApiResponse(description="Caller is not the project's employer"),
            409: OpenApiResponse(description="Milestone already paid or no contractor"),
            502: OpenApiResponse(description="Payment gateway error"),
        },
        tags=["Payments - Escrow"],
    )
    def post(self, request):
        serializer = EscrowPaymentRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = EscrowService().initiate_milestone_payment(
            employer=request.user,
            project_id=serializer.validated_data["project_id"],
            milestone_id=serializer.validated_data["milestone_id"],
            description=serializer.validated_data.get("description", ""),
        )
        if not result.success:
            return failure_response(result)

        return Response(
            EscrowPaymentResponseSerializer(result.data).data,
            status=status.HTTP_201_CREATED,
        )


class EscrowVerifyView(APIView):
    """
    Verify an escrow payment after the gateway redirect.

    POST /api/v1/payments/escrow/verify/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="verify_escrow_payment",
        summary="Verify escrow payment",
        request=EscrowVerifySerializer,
        responses={
            200: EscrowTransactionSerializer,
            400: OpenApiResponse(description="Payment cancelled or rejected"),
            404: OpenApiResponse(description="No pending transaction for this authority"),
        },
        tags=["Payments - Escrow"],
    )
    def post(self, request):
        serializer = EscrowVerifySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = EscrowService().verify_and_hold(
            transaction_id=serializer.validated_data["transaction_id"],
            authority=serializer.validated_data["Authority"],
            gateway_status=serializer.validated_data["Status"],
        )
        if not result.success:
            return failure_response(result)

        return Response(EscrowTransactionSerializer(result.data).data)


class EscrowReleaseView(APIView):
    """
    Release a held escrow payment to the contractor.

    POST /api/v1/payments/escrow/{id}/release/

    Only the project's employer or an admin may release. The whole held
    amount is released; the request body is ignored.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="release_escrow_payment",
        summary="Release escrow payment",
        request=None,
        responses={
            200: EscrowTransactionSerializer,
            403: OpenApiResponse(description="Caller may not release this payment"),
            404: OpenApiResponse(description="Transaction not found"),
            409: OpenApiResponse(description="Transaction is not held"),
        },
        tags=["Payments - Escrow"],
    )
    def post(self, request, pk):
        result = EscrowService().release(pk, actor=request.user)
        if not result.success:
            return failure_response(result)

        return Response(EscrowTransactionSerializer(result.data).data)


@extend_schema(
    operation_id="list_escrow_history",
    summary="Escrow payment history",
    tags=["Payments - Escrow"],
)
class EscrowHistoryView(generics.ListAPIView):
    """Escrow transactions where the caller is employer or contractor."""

    permission_classes = [IsAuthenticated]
    serializer_class = EscrowTransactionSerializer

    def get_queryset(self):
        queryset = EscrowService.history(self.request.user)
        state = self.request.query_params.get("state")
        if state:
            queryset = queryset.filter(state=state)
        return queryset


class EscrowStatsView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_escrow_stats",
        summary="Escrow totals for the caller",
        responses={200: EscrowStatsSerializer},
        tags=["Payments - Escrow"],
    )
    def get(self, request):
        return Response(EscrowStatsSerializer(EscrowService.stats(request.user)).data)


# =============================================================================
# Wallet
# =============================================================================


class WalletView(APIView):
    """
    Caller's wallet, created on first access.

    GET /api/v1/payments/wallet/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_wallet",
        summary="Get wallet balance",
        responses={200: WalletSerializer},
        tags=["Payments - Wallet"],
    )
    def get(self, request):
        wallet = WalletLedgerService.get_wallet(request.user)
        pending = wallet.transactions.filter(
            transaction_type=WalletTransactionType.WITHDRAWAL,
            status=WalletTransactionStatus.PENDING,
        ).aggregate(total=Sum("amount"))["total"]
        wallet.pending_withdrawals = pending or 0
        return Response(WalletSerializer(wallet).data)


@extend_schema(
    operation_id="list_wallet_transactions",
    summary="List wallet transactions",
    tags=["Payments - Wallet"],
)
class WalletTransactionListView(generics.ListAPIView):
    """
    Ledger rows of the caller's wallet, newest first.

    Filters: ?type=deposit|withdrawal|earning|payment|refund, ?status=...
    """

    permission_classes = [IsAuthenticated]
    serializer_class = WalletTransactionSerializer

    def get_queryset(self):
        wallet = WalletLedgerService.get_wallet(self.request.user)
        queryset = wallet.transactions.all()

        transaction_type = self.request.query_params.get("type")
        if transaction_type and transaction_type != "all":
            queryset = queryset.filter(transaction_type=transaction_type)

        tx_status = self.request.query_params.get("status")
        if tx_status and tx_status != "all":
            queryset = queryset.filter(status=tx_status)

        return queryset


class DepositView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="create_wallet_deposit",
        summary="Start a wallet deposit",
        request=DepositRequestSerializer,
        responses={
            201: DepositResponseSerializer,
            400: OpenApiResponse(description="Amount below minimum"),
            502: OpenApiResponse(description="Payment gateway error"),
        },
        tags=["Payments - Wallet"],
    )
    def post(self, request):
        serializer = DepositRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = WalletLedgerService().initiate_deposit(
            request.user, serializer.validated_data["amount"]
        )
        if not result.success:
            return failure_response(result)

        return Response(
            DepositResponseSerializer(result.data).data,
            status=status.HTTP_201_CREATED,
        )


class DepositVerifyView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="verify_wallet_deposit",
        summary="Verify a wallet deposit",
        request=DepositVerifySerializer,
        responses={
            200: WalletTransactionSerializer,
            400: OpenApiResponse(description="Payment cancelled or rejected"),
            404: OpenApiResponse(description="No pending deposit for this authority"),
        },
        tags=["Payments - Wallet"],
    )
    def post(self, request):
        serializer = DepositVerifySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = WalletLedgerService().verify_deposit(
            request.user,
            authority=serializer.validated_data["Authority"],
            gateway_status=serializer.validated_data["Status"],
        )
        if not result.success:
            return failure_response(result)

        return Response(WalletTransactionSerializer(result.data).data)


class WithdrawalRequestView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="create_withdrawal_request",
        summary="Request a withdrawal",
        request=WithdrawalRequestSerializer,
        responses={
            201: WalletTransactionSerializer,
            400: OpenApiResponse(description="Amount below minimum or insufficient balance"),
        },
        tags=["Payments - Wallet"],
    )
    def post(self, request):
        serializer = WithdrawalRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = WalletLedgerService().request_withdrawal(
            request.user,
            amount=serializer.validated_data["amount"],
            bank_account=serializer.validated_data["bank_account"],
            account_holder=serializer.validated_data["account_holder"],
            description=serializer.validated_data.get("description", ""),
        )
        if not result.success:
            return failure_response(result)

        return Response(
            WalletTransactionSerializer(result.data).data,
            status=status.HTTP_201_CREATED,
        )


@extend_schema(
    operation_id="list_pending_withdrawals",
    summary="Pending withdrawal queue (admin)",
    tags=["Payments - Wallet"],
)
class PendingWithdrawalListView(generics.ListAPIView):
    """
    Withdrawal requests waiting for an admin decision, oldest first.

    GET /api/v1/payments/wallet/withdrawals/
    """

    permission_classes = [IsAuthenticated, IsPlatformAdmin]
    serializer_class = PendingWithdrawalSerializer

    def get_queryset(self):
        return (
            WalletTransaction.objects.filter(
                transaction_type=WalletTransactionType.WITHDRAWAL,
                status=WalletTransactionStatus.PENDING,
            )
            .select_related("wallet__user")
            .order_by("created_at")
        )


class WithdrawalDecisionView(APIView):
    """
    Approve or reject a pending withdrawal.

    POST /api/v1/payments/wallet/withdrawals/{id}/approve/
    POST /api/v1/payments/wallet/withdrawals/{id}/reject/
    """

    permission_classes = [IsAuthenticated]
    approve = True

    @extend_schema(
        operation_id="decide_withdrawal",
        summary="Approve or reject a withdrawal (admin)",
        request=WithdrawalDecisionSerializer,
        responses={
            200: WalletTransactionSerializer,
            403: OpenApiResponse(description="Caller is not an admin"),
            404: OpenApiResponse(description="No pending withdrawal with this id"),
        },
        tags=["Payments - Wallet"],
    )
    def post(self, request, pk):
        serializer = WithdrawalDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        admin_note = serializer.validated_data.get("admin_note", "")

        if self.approve:
            result = WalletLedgerService.approve_withdrawal(pk, request.user, admin_note)
        else:
            result = WalletLedgerService.reject_withdrawal(pk, request.user, admin_note)

        if not result.success:
            return failure_response(result)

        return Response(WalletTransactionSerializer(result.data).data)
